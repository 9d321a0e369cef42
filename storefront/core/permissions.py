from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    message = "Access restricted to admin users only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsAdminOrReadOnly(BasePermission):
    """Any signed-in user may read; only admins may write"""
    message = "Only admin users can modify catalog data."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return user.is_admin


def can_access(user, owner_id):
    """Owners see their own records; admins see everything"""
    return user.is_admin or user.id == owner_id
