from django.urls import path
from .views import (
    LootListView, LootDetailView, LootStatusView, LootImportView, RecalculateSalariesView,
)

urlpatterns = [
    path('', LootListView.as_view(), name='loot-list'),
    path('import/', LootImportView.as_view(), name='loot-import'),
    path('recalculate/', RecalculateSalariesView.as_view(), name='loot-recalculate'),
    path('<int:pk>/', LootDetailView.as_view(), name='loot-detail'),
    path('<int:pk>/status/', LootStatusView.as_view(), name='loot-status'),
]
