"""
Tests for shared permissions services (has_permission, has_any_permission
and has_role).
"""

import pytest
from prisma.enums import UserRole

from src.shared.permissions.models import Permission
from src.shared.permissions.services import (
    has_any_permission,
    has_permission,
    has_role,
)


class TestHasPermission:
    """Test the has_permission function."""

    def test_admin_has_all_permissions(self):
        """Test that admins have all permissions."""
        for permission in Permission:
            assert has_permission([UserRole.admin], permission) is True

    def test_plain_user_has_none(self):
        for permission in Permission:
            assert has_permission([UserRole.user], permission) is False

    def test_any_role_granting_permission_is_enough(self):
        """A user holding several roles gets the union of their permissions."""
        roles = [UserRole.user, UserRole.group_rep]

        assert has_permission(roles, Permission.MANAGE_INVENTORY) is True
        assert has_permission(roles, Permission.REVIEW_RELIEF_GROUPS) is False

    @pytest.mark.parametrize(
        "role,permission,expected",
        [
            (UserRole.group_approver, Permission.REVIEW_RELIEF_GROUPS, True),
            (UserRole.group_approver, Permission.MANAGE_USERS, False),
            (UserRole.group_rep, Permission.MANAGE_INVENTORY, True),
            (UserRole.group_rep, Permission.MANAGE_ALL_INVENTORY, False),
        ],
    )
    def test_role_matrix(self, role, permission, expected):
        assert has_permission([role], permission) is expected

    def test_accepts_raw_role_strings(self):
        """Roles decoded from a JWT arrive as plain strings."""
        assert has_permission(["admin"], Permission.MANAGE_LOCATIONS) is True
        assert has_permission(["group_rep"], Permission.MANAGE_INVENTORY) is True

    def test_unknown_role_string_is_ignored(self):
        assert has_permission(["superuser"], Permission.MANAGE_USERS) is False

    def test_empty_roles(self):
        assert has_permission([], Permission.VIEW_ADMIN_STATS) is False


class TestHasAnyPermission:
    def test_one_match_is_enough(self):
        assert has_any_permission(
            [UserRole.group_approver],
            [Permission.MANAGE_INVENTORY, Permission.REVIEW_RELIEF_GROUPS],
        )

    def test_no_match(self):
        assert not has_any_permission(
            [UserRole.group_rep],
            [Permission.MANAGE_USERS, Permission.REVIEW_RELIEF_GROUPS],
        )


class TestHasRole:
    """Test the has_role function."""

    def test_has_role_with_enum(self):
        assert has_role([UserRole.user, UserRole.admin], UserRole.admin) is True

    def test_has_role_with_string(self):
        assert has_role(["user", "group_rep"], UserRole.group_rep) is True

    def test_missing_role(self):
        assert has_role(["user"], UserRole.admin) is False
