from django.db import IntegrityError
from rest_framework import viewsets, status

from accounts.permissions import IsGuildAdminOrReadOnly
from member.views import ResponseMixin
from .models import Boss
from .serializers import BossSerializer


class BossViewSet(ResponseMixin, viewsets.ModelViewSet):
    """
    CRUD for Boss:
      - GET    /api/bosses/           -> list (by name)
      - POST   /api/bosses/           -> create
      - GET    /api/bosses/{id}/      -> retrieve
      - PUT    /api/bosses/{id}/      -> full update
      - PATCH  /api/bosses/{id}/      -> partial update (e.g. {"last_killed": ...})
      - DELETE /api/bosses/{id}/      -> delete (refused while loot references it)
    """
    queryset = Boss.objects.all().order_by('name')
    serializer_class = BossSerializer
    permission_classes = [IsGuildAdminOrReadOnly]

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        boss_id = instance.id
        try:
            self.perform_destroy(instance)
        except IntegrityError:
            return self.fail(
                "Cannot delete boss while loot items reference it.",
                status_code=status.HTTP_409_CONFLICT
            )
        return self.ok(f"Boss {boss_id} deleted successfully.", {"id": boss_id})
