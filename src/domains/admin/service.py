import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import HTTPException, status
from prisma.enums import GroupStatus, UserRole
from prisma.models import ReliefGroup, User

from prisma import Prisma
from src.domains.admin.models import (
    AdminGroupDetailResponse,
    AdminGroupListResponse,
    AdminGroupResponse,
    AdminStats,
    UserListResponse,
)
from src.domains.audit.service import get_audit_trail, log_event
from src.domains.auth.models import UserResponse
from src.domains.auth.service import AuthService
from src.shared.exceptions import (
    InvalidDataError,
    ResourceNotFoundError,
    UserNotFoundError,
)
from src.shared.models import Pagination

logger = logging.getLogger(__name__)

GROUP_TARGET = "relief_group"
USER_TARGET = "user"
PENDING_STATUSES = [GroupStatus.submitted, GroupStatus.pending_review]
ADMIN_GROUP_INCLUDE = {
    "creator": True,
    "reviewer": True,
    "representatives": True,
    "documents": True,
    "homeDistrict": True,
    "homeTehsil": True,
}


class AdminService:
    """Moderation of relief groups and user accounts."""

    def __init__(self, db: Prisma):
        self.db = db

    async def get_stats(self) -> AdminStats:
        return AdminStats(
            total_groups=await self.db.reliefgroup.count(),
            pending_groups=await self.db.reliefgroup.count(
                where={"status": {"in": PENDING_STATUSES}}
            ),
            approved_groups=await self.db.reliefgroup.count(
                where={"status": GroupStatus.verified}
            ),
            rejected_groups=await self.db.reliefgroup.count(
                where={"status": GroupStatus.rejected}
            ),
            total_users=await self.db.user.count(),
            admin_users=await self.db.user.count(
                where={"roles": {"has": UserRole.admin}}
            ),
        )

    # Relief groups

    async def list_groups(
        self, status_filter: Optional[GroupStatus], limit: int, offset: int
    ) -> AdminGroupListResponse:
        where: dict[str, Any] = {"status": status_filter} if status_filter else {}
        groups = await self.db.reliefgroup.find_many(
            where=where,  # type: ignore[arg-type]
            include=ADMIN_GROUP_INCLUDE,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
            take=limit,
            skip=offset,
        )
        total = await self.db.reliefgroup.count(where=where)  # type: ignore[arg-type]

        return AdminGroupListResponse(
            groups=[AdminGroupResponse.from_prisma(group) for group in groups],
            pagination=Pagination.build(total, limit, offset),
        )

    async def get_group(self, group_id: str) -> AdminGroupDetailResponse:
        group = await self._get_group_or_404(group_id)
        audit_logs = await get_audit_trail(self.db, GROUP_TARGET, group_id)
        base = AdminGroupResponse.from_prisma(group)
        return AdminGroupDetailResponse(**base.model_dump(), audit_logs=audit_logs)

    async def approve_group(
        self, group_id: str, reviewer: User, notes: Optional[str] = None
    ) -> AdminGroupResponse:
        """
        Mark a group as verified and make sure its creator holds group_rep.

        Raises:
            ResourceNotFoundError: Unknown group
            InvalidDataError: Group already approved or rejected
        """
        group = await self._get_group_or_404(group_id)
        if group.status == GroupStatus.verified:
            raise InvalidDataError("Relief group is already approved")
        if group.status == GroupStatus.rejected:
            raise InvalidDataError("Cannot approve a rejected relief group")

        async with self.db.tx() as transaction:
            await transaction.reliefgroup.update(
                where={"id": group_id},
                data={
                    "status": GroupStatus.verified,
                    "reviewerId": reviewer.id,
                    "reviewedAt": datetime.now(timezone.utc),
                    "reviewNotes": notes,
                },
            )
            creator = group.creator
            if creator and UserRole.group_rep not in creator.roles:
                await transaction.user.update(
                    where={"id": creator.id},
                    data={"roles": {"set": [*creator.roles, UserRole.group_rep]}},
                )

        await log_event(
            self.db,
            action="relief_group_approved",
            target_type=GROUP_TARGET,
            actor_user_id=reviewer.id,
            target_id=group_id,
            metadata={"previous_status": group.status.value, "notes": notes},
        )
        logger.info(f"Relief group {group_id} approved by {reviewer.id}")
        return AdminGroupResponse.from_prisma(await self._get_group_or_404(group_id))

    async def reject_group(
        self,
        group_id: str,
        reviewer: User,
        reason: str,
        notes: Optional[str] = None,
    ) -> AdminGroupResponse:
        """
        Reject a group. The stored review notes are the reason, followed by a
        blank line and the free-form notes when given.
        """
        group = await self._get_group_or_404(group_id)
        if group.status == GroupStatus.verified:
            raise InvalidDataError("Cannot reject an approved relief group")
        if group.status == GroupStatus.rejected:
            raise InvalidDataError("Relief group is already rejected")

        review_notes = f"{reason}\n\n{notes}" if notes else reason
        await self.db.reliefgroup.update(
            where={"id": group_id},
            data={
                "status": GroupStatus.rejected,
                "reviewerId": reviewer.id,
                "reviewedAt": datetime.now(timezone.utc),
                "reviewNotes": review_notes,
            },
        )

        await log_event(
            self.db,
            action="relief_group_rejected",
            target_type=GROUP_TARGET,
            actor_user_id=reviewer.id,
            target_id=group_id,
            metadata={
                "previous_status": group.status.value,
                "reason": reason,
                "notes": notes,
            },
        )
        logger.info(f"Relief group {group_id} rejected by {reviewer.id}")
        return AdminGroupResponse.from_prisma(await self._get_group_or_404(group_id))

    async def request_more_info(
        self, group_id: str, reviewer: User, notes: str
    ) -> AdminGroupResponse:
        group = await self._get_group_or_404(group_id)
        if group.status not in PENDING_STATUSES:
            raise InvalidDataError(
                f"Cannot request more information for a group in status "
                f"{group.status.value}"
            )

        await self.db.reliefgroup.update(
            where={"id": group_id},
            data={
                "status": GroupStatus.needs_more_info,
                "reviewerId": reviewer.id,
                "reviewedAt": datetime.now(timezone.utc),
                "reviewNotes": notes,
            },
        )
        await log_event(
            self.db,
            action="relief_group_info_requested",
            target_type=GROUP_TARGET,
            actor_user_id=reviewer.id,
            target_id=group_id,
            metadata={"notes": notes},
        )
        return AdminGroupResponse.from_prisma(await self._get_group_or_404(group_id))

    async def _get_group_or_404(self, group_id: str) -> ReliefGroup:
        group = await self.db.reliefgroup.find_unique(
            where={"id": group_id},
            include=ADMIN_GROUP_INCLUDE,  # type: ignore[arg-type]
        )
        if not group:
            raise ResourceNotFoundError("Relief group")
        return group

    # Users

    async def list_users(
        self, role: Optional[UserRole], limit: int, offset: int
    ) -> UserListResponse:
        where: dict[str, Any] = {"roles": {"has": role}} if role else {}
        users = await self.db.user.find_many(
            where=where,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
            take=limit,
            skip=offset,
        )
        total = await self.db.user.count(where=where)  # type: ignore[arg-type]
        return UserListResponse(
            users=[UserResponse.from_prisma(user) for user in users],
            pagination=Pagination.build(total, limit, offset),
        )

    async def get_user(self, user_id: str) -> UserResponse:
        return UserResponse.from_prisma(await self._get_user_or_404(user_id))

    async def update_user_roles(
        self, user_id: str, actor: User, roles: List[UserRole], reason: str
    ) -> UserResponse:
        """
        Replace a user's roles.

        Raises:
            InvalidDataError: An admin tried to drop their own admin role
            HTTPException(403): A non-admin tried to grant admin
        """
        target = await self._get_user_or_404(user_id)
        new_roles = list(dict.fromkeys(roles))

        if target.id == actor.id and UserRole.admin not in new_roles:
            raise InvalidDataError("You cannot remove your own admin role")

        granting_admin = (
            UserRole.admin in new_roles and UserRole.admin not in target.roles
        )
        if granting_admin and UserRole.admin not in actor.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can grant the admin role",
            )

        updated = await self.db.user.update(
            where={"id": user_id}, data={"roles": {"set": new_roles}}
        )
        await log_event(
            self.db,
            action="user_roles_updated",
            target_type=USER_TARGET,
            actor_user_id=actor.id,
            target_id=user_id,
            metadata={
                "previous_roles": [r.value for r in target.roles],
                "new_roles": [r.value for r in new_roles],
                "reason": reason,
            },
        )
        return UserResponse.from_prisma(updated or target)

    async def set_user_active(
        self, user_id: str, actor: User, is_active: bool, reason: Optional[str]
    ) -> UserResponse:
        """Activate or deactivate an account; deactivation revokes its sessions."""
        target = await self._get_user_or_404(user_id)
        if target.id == actor.id and not is_active:
            raise InvalidDataError("You cannot deactivate your own account")

        updated = await self.db.user.update(
            where={"id": user_id}, data={"isActive": is_active}
        )
        if not is_active:
            await AuthService(self.db).revoke_all_sessions(user_id)

        await log_event(
            self.db,
            action="user_activated" if is_active else "user_deactivated",
            target_type=USER_TARGET,
            actor_user_id=actor.id,
            target_id=user_id,
            metadata={"reason": reason},
        )
        return UserResponse.from_prisma(updated or target)

    async def _get_user_or_404(self, user_id: str) -> User:
        user = await self.db.user.find_unique(where={"id": user_id})
        if not user:
            raise UserNotFoundError()
        return user
