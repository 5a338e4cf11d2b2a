from enum import Enum
from typing import Set

from prisma.enums import UserRole


class Permission(Enum):
    """
    Defines all permissions available in the system.

    Permissions should follow the pattern: ACTION_RESOURCE
    Common actions: VIEW, MANAGE, REVIEW
    """

    # Moderation permissions
    VIEW_ADMIN_STATS = "view_admin_stats"  # Dashboard counters
    REVIEW_RELIEF_GROUPS = "review_relief_groups"  # Approve, reject, request info
    VIEW_GROUP_DOCUMENTS = "view_group_documents"  # Signed URLs for uploaded docs
    MANAGE_USERS = "manage_users"  # List users, change roles, deactivate

    # Reference data permissions
    MANAGE_LOCATIONS = "manage_locations"  # State/district/tehsil/village CRUD
    MANAGE_SERVICES = "manage_services"  # Service catalog CRUD
    MANAGE_ALERTS = "manage_alerts"  # Alert categories, statuses, location alerts
    MANAGE_ITEM_TYPES = "manage_item_types"  # Inventory item type catalog

    # Operations permissions
    VIEW_SERVICE_REQUESTS = "view_service_requests"  # Citizen request queue
    MANAGE_SERVICE_REQUESTS = "manage_service_requests"  # Status and assignment
    MANAGE_INVENTORY = "manage_inventory"  # Create/update own group inventory
    MANAGE_ALL_INVENTORY = "manage_all_inventory"  # Any provider's inventory


ROLE_PERMISSIONS: dict[UserRole, Set[Permission]] = {
    UserRole.admin: {
        # Admins have all permissions
        *Permission,
    },
    UserRole.group_approver: {
        # Approvers moderate groups and see the request queue
        Permission.VIEW_ADMIN_STATS,
        Permission.REVIEW_RELIEF_GROUPS,
        Permission.VIEW_GROUP_DOCUMENTS,
        Permission.VIEW_SERVICE_REQUESTS,
    },
    UserRole.group_rep: {
        # Representatives of approved groups run their own inventory
        Permission.MANAGE_INVENTORY,
        Permission.VIEW_SERVICE_REQUESTS,
    },
    UserRole.user: set(),
}
