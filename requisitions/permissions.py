"""
Role based permission classes for the requisition endpoints.

The requisition services perform no authorization of their own; these
classes are the caller-side check applied before a mutating operation
is invoked.
"""
from rest_framework.permissions import BasePermission

from .models import User


def _has_role(request, *roles: str) -> bool:
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return False
    role = getattr(user, "role", None)
    return role == User.ROLE_ADMIN or role in roles


class CanRequest(BasePermission):
    """Create, edit, submit and cancel requisitions."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, User.ROLE_REQUESTER)


class CanApprove(BasePermission):
    """Approve or reject pending requisitions."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, User.ROLE_APPROVER)


class CanFulfill(BasePermission):
    """Issue stock against approved requisitions."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, User.ROLE_STOREKEEPER)
