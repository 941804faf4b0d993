from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import BossViewSet

router = DefaultRouter()
router.register(r'bosses', BossViewSet, basename='boss')

urlpatterns = [
    path('', include(router.urls)),
]
