from typing import List, Optional

from prisma.enums import UserRole
from prisma.models import ReliefGroup, User
from pydantic import BaseModel, Field

from src.domains.audit.models import AuditLogResponse
from src.domains.auth.models import UserResponse
from src.domains.relief_groups.models import ReliefGroupResponse
from src.shared.models import Pagination


class AdminStats(BaseModel):
    total_groups: int
    pending_groups: int
    approved_groups: int
    rejected_groups: int
    total_users: int
    admin_users: int


class UserSummary(BaseModel):
    id: str
    primary_login: str
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_prisma(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            primary_login=user.primaryLogin,
            email=user.email,
            phone=user.phone,
        )


class AdminGroupResponse(ReliefGroupResponse):
    creator: Optional[UserSummary] = None
    reviewer: Optional[UserSummary] = None

    @classmethod
    def from_prisma(cls, group: ReliefGroup) -> "AdminGroupResponse":
        base = ReliefGroupResponse.from_prisma(group)
        return cls(
            **base.model_dump(),
            creator=UserSummary.from_prisma(group.creator) if group.creator else None,
            reviewer=(
                UserSummary.from_prisma(group.reviewer) if group.reviewer else None
            ),
        )


class AdminGroupDetailResponse(AdminGroupResponse):
    audit_logs: List[AuditLogResponse] = []


class AdminGroupListResponse(BaseModel):
    groups: List[AdminGroupResponse]
    pagination: Pagination


class GroupApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class GroupRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class GroupInfoRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=2000)


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class UpdateUserRolesRequest(BaseModel):
    roles: List[UserRole] = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=500)


class UpdateUserStatusRequest(BaseModel):
    is_active: bool
    reason: Optional[str] = Field(None, max_length=500)
