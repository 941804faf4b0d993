from django.db import transaction
from rest_framework import serializers

from boss.models import Boss
from member.models import Member
from .models import LootItem, Participation, Salary


class ParticipantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Member
        fields = ['id', 'name', 'role']


class SalarySerializer(serializers.ModelSerializer):
    member_name = serializers.CharField(source='member.name', read_only=True)

    class Meta:
        model = Salary
        fields = ['id', 'member', 'member_name', 'amount']


class LootItemSerializer(serializers.ModelSerializer):
    """
    Read: boss name, participants and salaries nested.
    Write: `participant_ids` replaces the whole participation set.
    """
    boss = serializers.PrimaryKeyRelatedField(queryset=Boss.objects.all())
    boss_name = serializers.CharField(source='boss.name', read_only=True)
    status = serializers.ChoiceField(choices=LootItem.Status.choices, default=LootItem.Status.PENDING)
    participants = ParticipantSerializer(many=True, read_only=True)
    salaries = SalarySerializer(many=True, read_only=True)
    participant_ids = serializers.PrimaryKeyRelatedField(
        queryset=Member.objects.all(), many=True, write_only=True, required=False
    )

    class Meta:
        model = LootItem
        fields = [
            'id', 'name', 'value', 'date_acquired', 'status',
            'boss', 'boss_name', 'participants', 'salaries', 'participant_ids',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_value(self, value):
        if value <= 0:
            raise serializers.ValidationError("Value must be greater than zero.")
        return value

    def _set_participants(self, item, members):
        item.participations.all().delete()
        seen = set()
        rows = []
        for member in members:
            if member.pk in seen:
                continue
            seen.add(member.pk)
            rows.append(Participation(loot_item=item, member=member))
        Participation.objects.bulk_create(rows)

    def create(self, validated_data):
        members = validated_data.pop('participant_ids', [])
        with transaction.atomic():
            item = LootItem.objects.create(**validated_data)
            self._set_participants(item, members)
        return item

    def update(self, instance, validated_data):
        members = validated_data.pop('participant_ids', None)
        with transaction.atomic():
            for field, value in validated_data.items():
                setattr(instance, field, value)
            instance.save()
            if members is not None:
                self._set_participants(instance, members)
        return instance


class LootStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=LootItem.Status.choices)


class LootImportRowSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255)
    boss_name = serializers.CharField(max_length=255)
    item_value = serializers.FloatField()
    date_acquired = serializers.DateField(input_formats=['%m/%d/%Y'])
    participants = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False, default=list
    )

    def validate_item_value(self, value):
        if value <= 0:
            raise serializers.ValidationError("Item value must be greater than zero.")
        return value
