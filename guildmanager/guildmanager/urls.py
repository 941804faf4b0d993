"""
URL configuration for guildmanager project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include
from accounts.views import LoginView, VerifyView, LogoutView
from reports.views import DashboardView
from rest_framework_simplejwt.views import TokenRefreshView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/login/', LoginView.as_view(), name='auth_login'),
    path('api/auth/verify/', VerifyView.as_view(), name='auth_verify'),
    path('api/auth/logout/', LogoutView.as_view(), name='auth_logout'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/admin/dashboard/', DashboardView.as_view(), name='admin_dashboard'),

    path('api/', include('member.urls')),
    path('api/', include('boss.urls')),
    path('api/loot/', include('loot.urls')),
    path('api/reports/', include('reports.urls')),
]
