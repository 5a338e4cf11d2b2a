from typing import Optional

from fastapi import APIRouter, Depends, Query
from prisma.enums import GroupStatus, UserRole
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.admin.models import (
    AdminGroupDetailResponse,
    AdminGroupListResponse,
    AdminGroupResponse,
    AdminStats,
    GroupApproveRequest,
    GroupInfoRequest,
    GroupRejectRequest,
    UpdateUserRolesRequest,
    UpdateUserStatusRequest,
    UserListResponse,
)
from src.domains.admin.service import AdminService
from src.domains.auth.models import UserResponse
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=AdminStats, operation_id="getAdminStats")
async def get_admin_stats(
    user: User = Depends(require_permission(Permission.VIEW_ADMIN_STATS)),
    db: Prisma = Depends(get_db),
) -> AdminStats:
    service = AdminService(db)
    return await service.get_stats()


@router.get(
    "/relief-groups",
    response_model=AdminGroupListResponse,
    operation_id="listReliefGroupsForReview",
)
async def list_relief_groups(
    status_filter: Optional[GroupStatus] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.REVIEW_RELIEF_GROUPS)),
    db: Prisma = Depends(get_db),
) -> AdminGroupListResponse:
    """
    List relief groups for moderation, newest first.

    Requires REVIEW_RELIEF_GROUPS permission (admins and group approvers).
    """
    service = AdminService(db)
    return await service.list_groups(status_filter, limit, offset)


@router.get(
    "/relief-groups/{group_id}",
    response_model=AdminGroupDetailResponse,
    operation_id="getReliefGroupForReview",
)
async def get_relief_group(
    group_id: str,
    user: User = Depends(require_permission(Permission.REVIEW_RELIEF_GROUPS)),
    db: Prisma = Depends(get_db),
) -> AdminGroupDetailResponse:
    service = AdminService(db)
    return await service.get_group(group_id)


@router.post(
    "/relief-groups/{group_id}/approve",
    response_model=AdminGroupResponse,
    operation_id="approveReliefGroup",
)
async def approve_relief_group(
    group_id: str,
    payload: GroupApproveRequest,
    user: User = Depends(require_permission(Permission.REVIEW_RELIEF_GROUPS)),
    db: Prisma = Depends(get_db),
) -> AdminGroupResponse:
    service = AdminService(db)
    return await service.approve_group(group_id, user, payload.notes)


@router.post(
    "/relief-groups/{group_id}/reject",
    response_model=AdminGroupResponse,
    operation_id="rejectReliefGroup",
)
async def reject_relief_group(
    group_id: str,
    payload: GroupRejectRequest,
    user: User = Depends(require_permission(Permission.REVIEW_RELIEF_GROUPS)),
    db: Prisma = Depends(get_db),
) -> AdminGroupResponse:
    service = AdminService(db)
    return await service.reject_group(group_id, user, payload.reason, payload.notes)


@router.post(
    "/relief-groups/{group_id}/request-info",
    response_model=AdminGroupResponse,
    operation_id="requestReliefGroupInfo",
)
async def request_relief_group_info(
    group_id: str,
    payload: GroupInfoRequest,
    user: User = Depends(require_permission(Permission.REVIEW_RELIEF_GROUPS)),
    db: Prisma = Depends(get_db),
) -> AdminGroupResponse:
    service = AdminService(db)
    return await service.request_more_info(group_id, user, payload.notes)


@router.get("/users", response_model=UserListResponse, operation_id="listUsers")
async def list_users(
    role: Optional[UserRole] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Prisma = Depends(get_db),
) -> UserListResponse:
    service = AdminService(db)
    return await service.list_users(role, limit, offset)


@router.get("/users/{user_id}", response_model=UserResponse, operation_id="getUser")
async def get_user(
    user_id: str,
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Prisma = Depends(get_db),
) -> UserResponse:
    service = AdminService(db)
    return await service.get_user(user_id)


@router.patch(
    "/users/{user_id}/roles",
    response_model=UserResponse,
    operation_id="updateUserRoles",
)
async def update_user_roles(
    user_id: str,
    payload: UpdateUserRolesRequest,
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Prisma = Depends(get_db),
) -> UserResponse:
    """
    Replace a user's roles.

    Business rules:
    - At least one role and a reason are required
    - Admins cannot remove their own admin role
    - Only admins can grant the admin role
    """
    service = AdminService(db)
    return await service.update_user_roles(
        user_id, user, payload.roles, payload.reason
    )


@router.patch(
    "/users/{user_id}/status",
    response_model=UserResponse,
    operation_id="updateUserStatus",
)
async def update_user_status(
    user_id: str,
    payload: UpdateUserStatusRequest,
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    db: Prisma = Depends(get_db),
) -> UserResponse:
    service = AdminService(db)
    return await service.set_user_active(
        user_id, user, payload.is_active, payload.reason
    )
