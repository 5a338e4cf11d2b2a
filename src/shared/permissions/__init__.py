"""
Shared permission system for role-based access control.

Users carry one or more roles (user, group_rep, group_approver, admin);
each role grants a set of permissions.

Usage:
    from src.shared.permissions import Permission, require_permission

    @router.get("/admin/stats")
    async def get_stats(
        user: User = Depends(require_permission(Permission.VIEW_ADMIN_STATS))
    ):
        pass
"""

from .dependencies import require_permission
from .models import ROLE_PERMISSIONS, Permission
from .services import has_any_permission, has_permission, has_role

__all__ = [
    "Permission",
    "ROLE_PERMISSIONS",
    "has_any_permission",
    "has_permission",
    "has_role",
    "require_permission",
]
