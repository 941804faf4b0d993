from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.views import APIView

from accounts.permissions import IsGuildAdmin, IsGuildAdminOrReadOnly
from member.views import ResponseMixin
from .models import LootItem
from .serializers import LootItemSerializer, LootStatusSerializer
from .services import recalculate_global_salaries, import_loot_rows


def loot_queryset():
    return (
        LootItem.objects
        .select_related('boss')
        .prefetch_related('participants', 'salaries__member')
        .order_by('-date_acquired', '-id')
    )


class LootListView(ResponseMixin, APIView):
    """
    - GET  /api/loot/?search=dragon   -> items, newest first; matches item, boss or participant name
    - POST /api/loot/                 -> create one item
        body: { "name", "value", "date_acquired", "boss", "status"?, "participant_ids"? }
    """
    permission_classes = [IsGuildAdminOrReadOnly]

    def get(self, request):
        items = loot_queryset()
        search = (request.query_params.get('search') or '').strip()
        if search:
            items = items.filter(
                Q(name__icontains=search)
                | Q(boss__name__icontains=search)
                | Q(participants__name__icontains=search)
            ).distinct()
        data = LootItemSerializer(items, many=True).data
        return self.ok("Loot items fetched successfully.", {"loot_items": data})

    def post(self, request):
        serializer = LootItemSerializer(data=request.data)
        if not serializer.is_valid():
            return self.fail("Could not create loot item.", serializer.errors)
        item = serializer.save()
        item = loot_queryset().get(pk=item.pk)
        return self.ok("Loot item created.", {"loot_item": LootItemSerializer(item).data}, status.HTTP_201_CREATED)


class LootDetailView(ResponseMixin, APIView):
    """
    - GET    /api/loot/{id}/
    - PUT    /api/loot/{id}/   -> full update; participant_ids replace the participations
    - PATCH  /api/loot/{id}/
    - DELETE /api/loot/{id}/   -> removes participations and salaries with it
    """
    permission_classes = [IsGuildAdminOrReadOnly]

    def get(self, request, pk: int):
        item = get_object_or_404(loot_queryset(), pk=pk)
        return self.ok("Loot item fetched successfully.", {"loot_item": LootItemSerializer(item).data})

    def put(self, request, pk: int, partial=False):
        item = get_object_or_404(LootItem, pk=pk)
        serializer = LootItemSerializer(item, data=request.data, partial=partial)
        if not serializer.is_valid():
            return self.fail("Could not update loot item.", serializer.errors)
        serializer.save()
        item = loot_queryset().get(pk=pk)
        return self.ok("Loot item updated.", {"loot_item": LootItemSerializer(item).data})

    def patch(self, request, pk: int):
        return self.put(request, pk, partial=True)

    def delete(self, request, pk: int):
        item = get_object_or_404(LootItem, pk=pk)
        item.delete()
        return self.ok(f"Loot item {pk} deleted successfully.", {"id": pk})


class LootStatusView(ResponseMixin, APIView):
    """PUT /api/loot/{id}/status/   body: { "status": "PENDING" | "SOLD" | "SETTLED" }"""
    permission_classes = [IsGuildAdmin]

    def put(self, request, pk: int):
        item = get_object_or_404(LootItem, pk=pk)
        serializer = LootStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return self.fail("Invalid status.", serializer.errors)
        item.status = serializer.validated_data['status']
        item.save(update_fields=['status', 'updated_at'])
        item = loot_queryset().get(pk=pk)
        return self.ok("Loot status updated.", {"loot_item": LootItemSerializer(item).data})

    patch = put


class LootImportView(ResponseMixin, APIView):
    """
    POST /api/loot/import/
    body: { "rows": [ { "item_name", "boss_name", "item_value", "date_acquired": "MM/DD/YYYY",
                        "participants": ["name", ...] }, ... ] }
    """
    permission_classes = [IsGuildAdmin]

    def post(self, request):
        rows = request.data.get('rows') if isinstance(request.data, dict) else request.data
        if not isinstance(rows, list):
            return self.fail("A list of rows is required.")
        created, errors = import_loot_rows(rows)
        return self.ok(f"{len(created)} loot item(s) imported.", {
            "created": len(created),
            "ids": [item.pk for item in created],
            "errors": errors,
        })


class RecalculateSalariesView(ResponseMixin, APIView):
    """POST /api/loot/recalculate/ -> rebuilds every SOLD item's salaries"""
    permission_classes = [IsGuildAdmin]

    def post(self, request):
        result = recalculate_global_salaries()
        return self.ok("Salaries recalculated.", result)
