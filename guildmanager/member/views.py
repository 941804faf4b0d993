from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError

from rest_framework import viewsets, status, decorators
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsGuildAdmin, IsGuildAdminOrReadOnly
from . import role_timeline
from .attendance import sync_attendance
from .models import Member, RolePeriod
from .serializers import MemberSerializer, MemberDetailSerializer, RolePeriodSerializer
from .pagination import MemberPagination


class ResponseMixin:
    def ok(self, message="", payload=None, status_code=status.HTTP_200_OK):
        body = {"success": True, "message": message}
        if isinstance(payload, dict):
            body.update(payload)
        return Response(body, status=status_code)

    def fail(self, message="Validation error.", errors=None, status_code=status.HTTP_400_BAD_REQUEST):
        body = {"success": False, "message": message}
        if errors is not None:
            body["errors"] = errors
        return Response(body, status=status_code)

    def fail_validation(self, message, exc: DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return self.fail(message, errors)


class MemberViewSet(ResponseMixin, viewsets.ModelViewSet):
    """
    CRUD for guild members with uniform success/fail responses.
    Also provides:
      - GET  /api/members/{id}/role-history/
      - POST /api/members/{id}/role-history/   {"role", "start_date", "end_date"?, "reason"?}
    """
    queryset = Member.objects.all().order_by('id')
    serializer_class = MemberSerializer
    permission_classes = [IsGuildAdminOrReadOnly]
    pagination_class = MemberPagination

    def get_serializer_class(self):
        if self.action in ('retrieve', 'update', 'partial_update'):
            return MemberDetailSerializer
        return MemberSerializer

    # LIST (current role read from the open period)
    def list(self, request, *args, **kwargs):
        members = role_timeline.members_with_current_roles()
        page = self.paginate_queryset(members)
        data = self.get_serializer(page, many=True).data
        return self.get_paginated_response(data)

    # RETRIEVE
    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        data = self.get_serializer(instance).data
        return self.ok("Member fetched successfully.", {"member": data})

    # CREATE
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return self.fail("Could not create member.", serializer.errors)
        try:
            self.perform_create(serializer)
        except IntegrityError:
            # same name inserted by a concurrent request after validation
            return self.fail("A member with that name already exists.", status_code=status.HTTP_409_CONFLICT)
        return self.ok("Member created successfully.", {"member": serializer.data}, status.HTTP_201_CREATED)

    # UPDATE (PUT / PATCH)
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        if not serializer.is_valid():
            return self.fail("Could not update member.", serializer.errors)
        self.perform_update(serializer)
        return self.ok("Member updated successfully.", {"member": serializer.data})

    # DELETE
    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        member_id = instance.id
        try:
            self.perform_destroy(instance)
        except IntegrityError:
            return self.fail(
                "Cannot delete member due to related records.",
                status_code=status.HTTP_409_CONFLICT
            )
        return self.ok(f"Member {member_id} deleted successfully.", {"id": member_id})

    # --------- ROLE TIMELINE ---------

    @decorators.action(detail=True, methods=['get', 'post'], url_path='role-history')
    def role_history(self, request, pk=None):
        member = self.get_object()

        if request.method == 'POST':
            serializer = RolePeriodSerializer(data=request.data)
            if not serializer.is_valid():
                return self.fail("Role and start date are required.", serializer.errors)
            data = serializer.validated_data
            try:
                role_timeline.add_period(
                    member.pk,
                    data['role'],
                    data['start_date'],
                    data.get('end_date'),
                    data.get('reason'),
                )
            except DjangoValidationError as exc:
                return self.fail_validation("Could not add role period.", exc)
            status_code = status.HTTP_201_CREATED
            message = "Role period added."
        else:
            status_code = status.HTTP_200_OK
            message = "Role history fetched successfully."

        periods = role_timeline.history(member.pk)
        return self.ok(message, {
            "member_id": member.pk,
            "role_history": RolePeriodSerializer(periods, many=True).data,
        }, status_code)


class RolePeriodDetailView(ResponseMixin, APIView):
    """
    PUT/PATCH /api/members/role-history/<period_id>/   partial {role, start_date, end_date, reason}
    DELETE    /api/members/role-history/<period_id>/
    Edits are applied as given; overlapping neighbours are not adjusted.
    """
    permission_classes = [IsGuildAdmin]

    def put(self, request, period_id: int):
        serializer = RolePeriodSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return self.fail("Could not update role period.", serializer.errors)
        try:
            period = role_timeline.update_period(period_id, **serializer.validated_data)
        except RolePeriod.DoesNotExist:
            return self.fail("Role period not found.", status_code=status.HTTP_404_NOT_FOUND)
        except DjangoValidationError as exc:
            return self.fail_validation("Could not update role period.", exc)
        return self.ok("Role period updated.", {"period": RolePeriodSerializer(period).data})

    patch = put

    def delete(self, request, period_id: int):
        try:
            member = role_timeline.delete_period(period_id)
        except RolePeriod.DoesNotExist:
            return self.fail("Role period not found.", status_code=status.HTTP_404_NOT_FOUND)
        return self.ok(f"Role period {period_id} deleted.", {"id": period_id, "member_id": member.pk})


class AttendanceSyncView(ResponseMixin, APIView):
    """POST /api/members/attendance/sync/ -> marks this week's loot participants as attended."""
    permission_classes = [IsGuildAdmin]

    def post(self, request):
        result = sync_attendance()
        return self.ok("Attendance synced.", result)
