from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MemberViewSet, RolePeriodDetailView, AttendanceSyncView

router = DefaultRouter()
router.register(r'members', MemberViewSet, basename='member')

urlpatterns = [
    path('members/role-history/<int:period_id>/', RolePeriodDetailView.as_view(), name='role-period-detail'),
    path('members/attendance/sync/', AttendanceSyncView.as_view(), name='attendance-sync'),
    path('', include(router.urls)),
]
