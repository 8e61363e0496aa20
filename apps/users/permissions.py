"""Permission classes shared by the rental API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_staff_member(user) -> bool:
    """True for admins, rental desk staff and Django staff accounts."""
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_staff_member") and user.is_staff_member()


class IsStaffMember(permissions.BasePermission):
    """Only admins and rental desk staff."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_staff_member(request.user)


class IsStaffMemberOrReadOnly(permissions.BasePermission):
    """Any authenticated user may read, only staff may write."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_staff_member(user)


class IsAdminRole(permissions.BasePermission):
    """Only users with the admin role (or Django superusers)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_superuser", False):
            return True
        return hasattr(user, "is_admin") and user.is_admin()
