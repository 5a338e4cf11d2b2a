from typing import List

from fastapi import APIRouter, Depends, status
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.auth.dependencies import get_current_user
from src.domains.relief_groups.models import (
    OtpRequestPayload,
    OtpRequestResponse,
    OtpVerifyPayload,
    OtpVerifyResponse,
    ReliefGroupCreate,
    ReliefGroupResponse,
)
from src.domains.relief_groups.otp_service import OtpService
from src.domains.relief_groups.service import ReliefGroupService

router = APIRouter(prefix="/relief-groups", tags=["Relief Groups"])


@router.post(
    "/otp/request",
    response_model=OtpRequestResponse,
    operation_id="requestRepresentativeOtp",
)
async def request_otp(
    payload: OtpRequestPayload, db: Prisma = Depends(get_db)
) -> OtpRequestResponse:
    """
    Send a verification code to the representative's phone.

    Limited to 3 requests per minute and 10 per day per phone number.
    """
    service = OtpService(db)
    return await service.request_otp(payload.rep_phone, payload.channel)


@router.post(
    "/otp/verify",
    response_model=OtpVerifyResponse,
    operation_id="verifyRepresentativeOtp",
)
async def verify_otp(
    payload: OtpVerifyPayload, db: Prisma = Depends(get_db)
) -> OtpVerifyResponse:
    """Exchange a valid code for a short-lived otp_token used at registration."""
    service = OtpService(db)
    return await service.verify_otp(payload.rep_phone, payload.code)


@router.post(
    "",
    response_model=ReliefGroupResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="registerReliefGroup",
)
async def register_relief_group(
    payload: ReliefGroupCreate,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> ReliefGroupResponse:
    """
    Register a relief group for review.

    Requires an otp_token for rep_phone. A user can register one group.
    """
    service = ReliefGroupService(db)
    return await service.register_group(payload, user)


@router.get(
    "",
    response_model=List[ReliefGroupResponse],
    operation_id="getMyReliefGroups",
)
async def get_my_relief_groups(
    user: User = Depends(get_current_user), db: Prisma = Depends(get_db)
) -> List[ReliefGroupResponse]:
    service = ReliefGroupService(db)
    return await service.list_my_groups(user)
