"""
Tests for shared permissions models (Permission enum and ROLE_PERMISSIONS mapping).
"""

from prisma.enums import UserRole

from src.shared.permissions.models import ROLE_PERMISSIONS, Permission


class TestPermissionEnum:
    """Test the Permission enum definition."""

    def test_permission_enum_values(self):
        """Test that all expected permissions are defined with correct values."""
        # Moderation permissions
        assert Permission.VIEW_ADMIN_STATS.value == "view_admin_stats"
        assert Permission.REVIEW_RELIEF_GROUPS.value == "review_relief_groups"
        assert Permission.VIEW_GROUP_DOCUMENTS.value == "view_group_documents"
        assert Permission.MANAGE_USERS.value == "manage_users"

        # Reference data permissions
        assert Permission.MANAGE_LOCATIONS.value == "manage_locations"
        assert Permission.MANAGE_SERVICES.value == "manage_services"
        assert Permission.MANAGE_ALERTS.value == "manage_alerts"
        assert Permission.MANAGE_ITEM_TYPES.value == "manage_item_types"

        # Operations permissions
        assert Permission.VIEW_SERVICE_REQUESTS.value == "view_service_requests"
        assert Permission.MANAGE_SERVICE_REQUESTS.value == "manage_service_requests"
        assert Permission.MANAGE_INVENTORY.value == "manage_inventory"
        assert Permission.MANAGE_ALL_INVENTORY.value == "manage_all_inventory"


class TestRolePermissions:
    """Test the role to permission mapping."""

    def test_every_role_is_mapped(self):
        assert set(ROLE_PERMISSIONS) == set(UserRole)

    def test_admin_has_every_permission(self):
        assert ROLE_PERMISSIONS[UserRole.admin] == set(Permission)

    def test_plain_user_has_no_permissions(self):
        assert ROLE_PERMISSIONS[UserRole.user] == set()

    def test_group_approver_moderates_but_manages_no_reference_data(self):
        approver = ROLE_PERMISSIONS[UserRole.group_approver]

        assert Permission.REVIEW_RELIEF_GROUPS in approver
        assert Permission.VIEW_GROUP_DOCUMENTS in approver
        assert Permission.MANAGE_USERS not in approver
        assert Permission.MANAGE_LOCATIONS not in approver
        assert Permission.MANAGE_ALERTS not in approver

    def test_group_rep_manages_own_inventory_only(self):
        rep = ROLE_PERMISSIONS[UserRole.group_rep]

        assert Permission.MANAGE_INVENTORY in rep
        assert Permission.MANAGE_ALL_INVENTORY not in rep
        assert Permission.REVIEW_RELIEF_GROUPS not in rep
