"""
Core App Permissions - Backoffice access control
"""

from rest_framework import permissions


class IsBackofficeUser(permissions.BasePermission):
    """
    Any active admin role may read; viewers may not write.
    """

    message = "Accès réservé au backoffice."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if not getattr(user, 'is_backoffice', False):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return user.can_write


class IsSuperAdmin(permissions.BasePermission):
    """Permission for super admins only."""

    def has_permission(self, request, view):
        from .models import AdminRole
        return (
            request.user.is_authenticated
            and request.user.is_active
            and request.user.role == AdminRole.SUPER_ADMIN
        )


def is_backoffice_user(user) -> bool:
    """Same rule for non-DRF callers (websocket consumers, plain views)."""
    return bool(user and user.is_authenticated and getattr(user, 'is_backoffice', False))
