from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from prisma.enums import ServiceRequestStatus
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.service_requests.models import (
    ServiceRequestConfirmation,
    ServiceRequestCreate,
    ServiceRequestCreated,
    ServiceRequestListResponse,
    ServiceRequestResponse,
    ServiceRequestUpdate,
)
from src.domains.service_requests.service import ServiceRequestService
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/service-requests", tags=["Service Requests"])


@router.post(
    "",
    response_model=ServiceRequestCreated,
    status_code=status.HTTP_201_CREATED,
    operation_id="submitServiceRequest",
)
async def submit_service_request(
    payload: ServiceRequestCreate, db: Prisma = Depends(get_db)
) -> ServiceRequestCreated:
    """
    Public endpoint for citizens asking for help.

    Returns the request number (PFR + date + daily sequence) to quote on
    follow-up.
    """
    service = ServiceRequestService(db)
    return await service.create_request(payload)


@router.get(
    "",
    response_model=ServiceRequestListResponse,
    operation_id="listServiceRequests",
)
async def list_service_requests(
    status_filter: Optional[ServiceRequestStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.VIEW_SERVICE_REQUESTS)),
    db: Prisma = Depends(get_db),
) -> ServiceRequestListResponse:
    service = ServiceRequestService(db)
    return await service.list_requests(status_filter, limit, offset)


@router.get(
    "/number/{request_number}",
    response_model=ServiceRequestConfirmation,
    operation_id="getServiceRequestByNumber",
)
async def get_service_request_by_number(
    request_number: str, db: Prisma = Depends(get_db)
) -> ServiceRequestConfirmation:
    service = ServiceRequestService(db)
    return await service.get_by_number(request_number)


@router.patch(
    "/{request_id}",
    response_model=ServiceRequestResponse,
    operation_id="updateServiceRequest",
)
async def update_service_request(
    request_id: str,
    payload: ServiceRequestUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_SERVICE_REQUESTS)),
    db: Prisma = Depends(get_db),
) -> ServiceRequestResponse:
    service = ServiceRequestService(db)
    return await service.update_request(request_id, payload, user)
