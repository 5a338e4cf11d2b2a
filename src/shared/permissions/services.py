from typing import Iterable

from prisma.enums import UserRole

from .models import ROLE_PERMISSIONS, Permission


def _as_role(role: UserRole | str) -> UserRole | None:
    try:
        return UserRole(role)
    except ValueError:
        return None


def has_permission(roles: Iterable[UserRole | str], permission: Permission) -> bool:
    """
    Check if any of a user's roles grants a specific permission.

    Args:
        roles: The user's roles (enum members or raw role strings)
        permission: The permission to validate

    Returns:
        True if one of the roles has the permission, False otherwise
    """
    for role in roles:
        user_role = _as_role(role)
        if user_role and permission in ROLE_PERMISSIONS.get(user_role, set()):
            return True
    return False


def has_role(roles: Iterable[UserRole | str], role: UserRole) -> bool:
    return any(_as_role(r) == role for r in roles)


def has_any_permission(
    roles: Iterable[UserRole | str], permissions: Iterable[Permission]
) -> bool:
    return any(has_permission(roles, p) for p in permissions)
