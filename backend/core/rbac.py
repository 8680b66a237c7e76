"""
ShopDesk — RBAC dependencies.

Provides the FastAPI dependency for role-based access control.
"""

from fastapi import Depends

from core.auth import has_permission
from core.errors import AuthenticationError, PermissionDenied


def require_role(required_role: str):
    """FastAPI dependency that checks the user has at least the given role."""
    # Import here to avoid a circular dependency between core.rbac and core.dependencies
    from core.dependencies import get_current_user

    async def role_checker(current_user: dict = Depends(get_current_user)):
        if not current_user:
            raise AuthenticationError("Not authenticated")
        if not has_permission(current_user["role"], required_role):
            raise PermissionDenied("Insufficient permissions")
        return current_user
    return role_checker


def actor_name(current_user: dict) -> str:
    """Display name recorded in completed_by / audit columns."""
    return current_user.get("username") or "system"
