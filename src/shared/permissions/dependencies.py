from typing import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from prisma.models import User

from src.domains.auth.dependencies import get_current_user

from .models import Permission
from .services import has_permission


def require_permission(
    permission: Permission,
) -> Callable[..., Awaitable[User]]:
    """
    Dependency factory for role-based authorization.

    Creates a dependency that validates the current user holds a role
    granting the specified permission.

    Args:
        permission: The permission required to access the endpoint

    Returns:
        Async dependency function that validates permission and returns the user
    """

    async def check_permission(user: User = Depends(get_current_user)) -> User:
        """
        Validate user has required permission.

        Raises:
            HTTPException: If user lacks required permission
        """
        if not has_permission(user.roles, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions: {permission.value} required",
            )

        return user

    return check_permission
