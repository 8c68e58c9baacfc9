# apps/core/permissions.py
"""
Centralized permission classes for the entire application.
"""
from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """
    Permission class for admin-only access.
    Grants access to superusers and users with ADMIN role.
    """
    message = "Only administrators can perform this action."

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and (request.user.is_superuser or request.user.role == 'ADMIN')
        )


class HasBusiness(permissions.BasePermission):
    """
    Grants access to authenticated users attached to a business (tenant).
    Users without one must complete the business setup first.
    """
    message = "No business is associated with this account"

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and getattr(request.user, 'business_id', None)
        )
