"""
Tests for moderation and user administration in src/domains/admin/service.py
"""

from unittest.mock import Mock

import pytest
from fastapi import HTTPException
from prisma.enums import GroupStatus, UserRole

from src.domains.admin.models import AdminGroupDetailResponse, AdminGroupResponse
from src.domains.admin.service import AdminService
from src.shared.exceptions import (
    InvalidDataError,
    ResourceNotFoundError,
    UserNotFoundError,
)
from tests.fixtures.auth_fixtures import make_user
from tests.fixtures.relief_group_fixtures import make_group


class TestStats:
    @pytest.mark.asyncio
    async def test_get_stats(self, mock_prisma: Mock):
        mock_prisma.reliefgroup.count.side_effect = [12, 5, 6, 1]
        mock_prisma.user.count.side_effect = [40, 2]

        service = AdminService(mock_prisma)
        stats = await service.get_stats()

        assert stats.total_groups == 12
        assert stats.pending_groups == 5
        assert stats.approved_groups == 6
        assert stats.rejected_groups == 1
        assert stats.total_users == 40
        assert stats.admin_users == 2


class TestGroupModeration:
    @pytest.mark.asyncio
    async def test_list_groups_with_status_filter(
        self, mock_prisma: Mock, mock_group: Mock
    ):
        # Arrange
        mock_prisma.reliefgroup.find_many.return_value = [mock_group]
        mock_prisma.reliefgroup.count.return_value = 21

        # Act
        service = AdminService(mock_prisma)
        result = await service.list_groups(GroupStatus.submitted, limit=10, offset=10)

        # Assert
        assert len(result.groups) == 1
        assert result.groups[0].creator.id == "rep-user-id-1"
        assert result.pagination.total == 21
        assert result.pagination.has_more is True

        kwargs = mock_prisma.reliefgroup.find_many.call_args[1]
        assert kwargs["where"] == {"status": GroupStatus.submitted}
        assert kwargs["take"] == 10
        assert kwargs["skip"] == 10
        assert kwargs["order"] == {"createdAt": "desc"}

    @pytest.mark.asyncio
    async def test_get_group_includes_audit_trail(
        self, mock_prisma: Mock, mock_group: Mock
    ):
        mock_prisma.reliefgroup.find_unique.return_value = mock_group

        service = AdminService(mock_prisma)
        result = await service.get_group("group-id-1")

        assert isinstance(result, AdminGroupDetailResponse)
        assert result.audit_logs == []
        audit_where = mock_prisma.auditlog.find_many.call_args[1]["where"]
        assert audit_where == {"targetType": "relief_group", "targetId": "group-id-1"}

    @pytest.mark.asyncio
    async def test_get_missing_group(self, mock_prisma: Mock):
        mock_prisma.reliefgroup.find_unique.return_value = None

        service = AdminService(mock_prisma)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.get_group("missing")

        assert exc_info.value.detail == "Relief group not found"

    @pytest.mark.asyncio
    async def test_approve_grants_group_rep(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        # Arrange
        group = make_group()
        group.creator = make_user(user_id="rep-user-id-1", roles=[UserRole.user])
        mock_prisma.reliefgroup.find_unique.return_value = group

        # Act
        service = AdminService(mock_prisma)
        result = await service.approve_group("group-id-1", mock_admin_user, "Looks good")

        # Assert
        assert isinstance(result, AdminGroupResponse)
        data = mock_prisma.reliefgroup.update.call_args[1]["data"]
        assert data["status"] == GroupStatus.verified
        assert data["reviewerId"] == "admin-user-id-1"
        assert data["reviewNotes"] == "Looks good"

        role_update = mock_prisma.user.update.call_args[1]
        assert role_update["where"] == {"id": "rep-user-id-1"}
        assert role_update["data"] == {
            "roles": {"set": [UserRole.user, UserRole.group_rep]}
        }

        audit = mock_prisma.auditlog.create.call_args[1]["data"]
        assert audit["action"] == "relief_group_approved"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "current,message",
        [
            (GroupStatus.verified, "Relief group is already approved"),
            (GroupStatus.rejected, "Cannot approve a rejected relief group"),
        ],
    )
    async def test_approve_terminal_states(
        self, mock_prisma: Mock, mock_admin_user: Mock, current, message
    ):
        mock_prisma.reliefgroup.find_unique.return_value = make_group(status=current)

        service = AdminService(mock_prisma)
        with pytest.raises(InvalidDataError) as exc_info:
            await service.approve_group("group-id-1", mock_admin_user)

        assert exc_info.value.detail == message
        mock_prisma.reliefgroup.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_combines_reason_and_notes(
        self, mock_prisma: Mock, mock_approver_user: Mock
    ):
        mock_prisma.reliefgroup.find_unique.return_value = make_group(
            status=GroupStatus.pending_review
        )

        service = AdminService(mock_prisma)
        await service.reject_group(
            "group-id-1", mock_approver_user, "Certificate unreadable", "Please rescan"
        )

        data = mock_prisma.reliefgroup.update.call_args[1]["data"]
        assert data["status"] == GroupStatus.rejected
        assert data["reviewNotes"] == "Certificate unreadable\n\nPlease rescan"

    @pytest.mark.asyncio
    async def test_reject_approved_group(
        self, mock_prisma: Mock, mock_approver_user: Mock
    ):
        mock_prisma.reliefgroup.find_unique.return_value = make_group(
            status=GroupStatus.verified
        )

        service = AdminService(mock_prisma)
        with pytest.raises(InvalidDataError):
            await service.reject_group("group-id-1", mock_approver_user, "reason")

    @pytest.mark.asyncio
    async def test_request_more_info(self, mock_prisma: Mock, mock_approver_user: Mock):
        mock_prisma.reliefgroup.find_unique.return_value = make_group()

        service = AdminService(mock_prisma)
        await service.request_more_info(
            "group-id-1", mock_approver_user, "Upload registration certificate"
        )

        data = mock_prisma.reliefgroup.update.call_args[1]["data"]
        assert data["status"] == GroupStatus.needs_more_info
        assert data["reviewNotes"] == "Upload registration certificate"

    @pytest.mark.asyncio
    async def test_request_more_info_wrong_status(
        self, mock_prisma: Mock, mock_approver_user: Mock
    ):
        mock_prisma.reliefgroup.find_unique.return_value = make_group(
            status=GroupStatus.needs_more_info
        )

        service = AdminService(mock_prisma)
        with pytest.raises(InvalidDataError) as exc_info:
            await service.request_more_info("group-id-1", mock_approver_user, "notes")

        assert "needs_more_info" in exc_info.value.detail


class TestUserAdministration:
    @pytest.mark.asyncio
    async def test_list_users_by_role(self, mock_prisma: Mock, mock_admin_user: Mock):
        mock_prisma.user.find_many.return_value = [mock_admin_user]
        mock_prisma.user.count.return_value = 1

        service = AdminService(mock_prisma)
        result = await service.list_users(UserRole.admin, limit=10, offset=0)

        assert [u.id for u in result.users] == ["admin-user-id-1"]
        assert result.pagination.has_more is False
        where = mock_prisma.user.find_many.call_args[1]["where"]
        assert where == {"roles": {"has": UserRole.admin}}

    @pytest.mark.asyncio
    async def test_get_missing_user(self, mock_prisma: Mock):
        mock_prisma.user.find_unique.return_value = None

        service = AdminService(mock_prisma)
        with pytest.raises(UserNotFoundError):
            await service.get_user("missing")

    @pytest.mark.asyncio
    async def test_update_roles_deduplicates(
        self, mock_prisma: Mock, mock_admin_user: Mock, mock_user: Mock
    ):
        mock_prisma.user.find_unique.return_value = mock_user
        mock_prisma.user.update.return_value = mock_user

        service = AdminService(mock_prisma)
        await service.update_user_roles(
            "test-user-id-123",
            mock_admin_user,
            [UserRole.user, UserRole.group_approver, UserRole.user],
            "Trusted district coordinator",
        )

        data = mock_prisma.user.update.call_args[1]["data"]
        assert data == {"roles": {"set": [UserRole.user, UserRole.group_approver]}}

    @pytest.mark.asyncio
    async def test_admin_cannot_drop_own_admin_role(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.user.find_unique.return_value = mock_admin_user

        service = AdminService(mock_prisma)
        with pytest.raises(InvalidDataError) as exc_info:
            await service.update_user_roles(
                "admin-user-id-1", mock_admin_user, [UserRole.user], "oops"
            )

        assert exc_info.value.detail == "You cannot remove your own admin role"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_grant_admin(
        self, mock_prisma: Mock, mock_approver_user: Mock, mock_user: Mock
    ):
        mock_prisma.user.find_unique.return_value = mock_user

        service = AdminService(mock_prisma)
        with pytest.raises(HTTPException) as exc_info:
            await service.update_user_roles(
                "test-user-id-123",
                mock_approver_user,
                [UserRole.admin],
                "escalation",
            )

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_deactivate_revokes_sessions(
        self, mock_prisma: Mock, mock_admin_user: Mock, mock_user: Mock
    ):
        mock_prisma.user.find_unique.return_value = mock_user
        mock_prisma.user.update.return_value = mock_user

        service = AdminService(mock_prisma)
        await service.set_user_active(
            "test-user-id-123", mock_admin_user, False, "Spam reports"
        )

        assert mock_prisma.user.update.call_args[1]["data"] == {"isActive": False}
        revoke_where = mock_prisma.session.update_many.call_args[1]["where"]
        assert revoke_where == {"userId": "test-user-id-123", "revokedAt": None}
        audit = mock_prisma.auditlog.create.call_args[1]["data"]
        assert audit["action"] == "user_deactivated"

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.user.find_unique.return_value = mock_admin_user

        service = AdminService(mock_prisma)
        with pytest.raises(InvalidDataError):
            await service.set_user_active(
                "admin-user-id-1", mock_admin_user, False, None
            )
