from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from . import role_timeline
from .models import Member, MemberRole, RolePeriod, Attendance


class RolePeriodSerializer(serializers.ModelSerializer):
    role = serializers.ChoiceField(choices=MemberRole.choices)
    end_date = serializers.DateTimeField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = RolePeriod
        fields = ['id', 'member', 'role', 'start_date', 'end_date', 'reason', 'created_at']
        read_only_fields = ['id', 'member', 'created_at']


class AttendanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Attendance
        fields = ['week', 'attended']


class MemberSerializer(serializers.ModelSerializer):
    role = serializers.ChoiceField(choices=MemberRole.choices)
    current_role = serializers.SerializerMethodField()

    # Role-timeline inputs, never stored on Member itself
    start_date = serializers.DateTimeField(write_only=True, required=False, allow_null=True)
    reason = serializers.CharField(write_only=True, required=False, allow_blank=True)
    role_change_reason = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Member
        fields = [
            'id', 'name', 'role', 'current_role',
            'promotion_date', 'demotion_date', 'created_at',
            'start_date', 'reason', 'role_change_reason',
        ]
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {
            'promotion_date': {'required': False, 'allow_null': True},
            'demotion_date': {'required': False, 'allow_null': True},
        }

    def get_current_role(self, obj):
        return getattr(obj, 'current_role', obj.role)

    def create(self, validated_data):
        start_date = validated_data.pop('start_date', None)
        reason = validated_data.pop('reason', None)
        validated_data.pop('role_change_reason', None)

        with transaction.atomic():
            member = Member.objects.create(**validated_data)
            role_timeline.add_period(
                member.pk,
                member.role,
                start_date or member.created_at,
                None,
                reason or 'Initial member creation',
            )
        member.refresh_from_db(fields=['role'])
        return member

    def update(self, instance, validated_data):
        role = validated_data.pop('role', None)
        role_change_reason = validated_data.pop('role_change_reason', None)
        validated_data.pop('start_date', None)
        validated_data.pop('reason', None)

        with transaction.atomic():
            for field, value in validated_data.items():
                setattr(instance, field, value)
            instance.save()

            # Role changes go through the timeline, starting now
            if role is not None and role != role_timeline.current_role(instance.pk):
                role_timeline.add_period(
                    instance.pk,
                    role,
                    timezone.now(),
                    None,
                    role_change_reason or f'Role changed to {role}',
                )
        instance.refresh_from_db(fields=['role'])
        return instance


class MemberDetailSerializer(MemberSerializer):
    role_history = serializers.SerializerMethodField()
    attendances = serializers.SerializerMethodField()

    class Meta(MemberSerializer.Meta):
        fields = MemberSerializer.Meta.fields + ['role_history', 'attendances']

    def get_role_history(self, obj):
        periods = obj.role_periods.order_by('-start_date', '-id')
        return RolePeriodSerializer(periods, many=True).data

    def get_attendances(self, obj):
        return AttendanceSerializer(obj.attendances.order_by('-week')[:10], many=True).data
