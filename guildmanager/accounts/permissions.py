from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsGuildAdmin(BasePermission):
    """
    Gate for every mutating guild action. Anonymous callers get 401 (the JWT
    authenticator supplies the WWW-Authenticate header), logged-in non-staff get 403.
    """
    message = "Guild admin privileges are required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)


class IsGuildAdminOrReadOnly(IsGuildAdmin):
    """Public reads, admin-only writes."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
