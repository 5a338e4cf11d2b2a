from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from prisma.enums import LocationType
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.alerts.models import (
    AlertCategoryCreate,
    AlertCategoryResponse,
    AlertCategoryUpdate,
    AlertCreate,
    AlertListResponse,
    AlertResponse,
    AlertStatusCreate,
    AlertStatusResponse,
    AlertStatusUpdate,
    BulkAlertResult,
    BulkAlertUpdate,
    LocationAlertUpdate,
)
from src.domains.alerts.service import AlertService
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/admin/alerts", tags=["Alerts"])

manage_alerts = require_permission(Permission.MANAGE_ALERTS)


# Categories


@router.get(
    "/categories",
    response_model=List[AlertCategoryResponse],
    operation_id="listAlertCategories",
)
async def list_categories(
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> List[AlertCategoryResponse]:
    """Active categories with their active statuses, in display order."""
    service = AlertService(db)
    return await service.list_categories()


@router.post(
    "/categories",
    response_model=AlertCategoryResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createAlertCategory",
)
async def create_category(
    payload: AlertCategoryCreate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertCategoryResponse:
    service = AlertService(db)
    return await service.create_category(payload, user)


@router.get(
    "/categories/{category_id}",
    response_model=AlertCategoryResponse,
    operation_id="getAlertCategory",
)
async def get_category(
    category_id: str,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertCategoryResponse:
    service = AlertService(db)
    return await service.get_category(category_id)


@router.put(
    "/categories/{category_id}",
    response_model=AlertCategoryResponse,
    operation_id="updateAlertCategory",
)
async def update_category(
    category_id: str,
    payload: AlertCategoryUpdate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertCategoryResponse:
    service = AlertService(db)
    return await service.update_category(category_id, payload, user)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteAlertCategory",
)
async def delete_category(
    category_id: str,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> None:
    service = AlertService(db)
    await service.delete_category(category_id, user)


# Statuses


@router.get(
    "/categories/{category_id}/statuses",
    response_model=List[AlertStatusResponse],
    operation_id="listAlertStatuses",
)
async def list_statuses(
    category_id: str,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> List[AlertStatusResponse]:
    service = AlertService(db)
    return await service.list_statuses(category_id)


@router.post(
    "/categories/{category_id}/statuses",
    response_model=AlertStatusResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createAlertStatus",
)
async def create_status(
    category_id: str,
    payload: AlertStatusCreate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertStatusResponse:
    service = AlertService(db)
    return await service.create_status(category_id, payload, user)


@router.get(
    "/categories/{category_id}/statuses/{status_id}",
    response_model=AlertStatusResponse,
    operation_id="getAlertStatus",
)
async def get_status(
    category_id: str,
    status_id: str,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertStatusResponse:
    service = AlertService(db)
    return await service.get_status(category_id, status_id)


@router.put(
    "/categories/{category_id}/statuses/{status_id}",
    response_model=AlertStatusResponse,
    operation_id="updateAlertStatus",
)
async def update_status(
    category_id: str,
    status_id: str,
    payload: AlertStatusUpdate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertStatusResponse:
    service = AlertService(db)
    return await service.update_status(category_id, status_id, payload, user)


@router.delete(
    "/categories/{category_id}/statuses/{status_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteAlertStatus",
)
async def delete_status(
    category_id: str,
    status_id: str,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> None:
    service = AlertService(db)
    await service.delete_status(category_id, status_id, user)


# Location alerts


@router.get(
    "/locations", response_model=AlertListResponse, operation_id="listLocationAlerts"
)
async def list_alerts(
    state_code: Optional[str] = Query(None),
    district_code: Optional[str] = Query(None),
    tehsil_code: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    is_active: bool = Query(True),
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertListResponse:
    """Alerts grouped by location type, with the overall total."""
    service = AlertService(db)
    return await service.list_alerts(
        state_code, district_code, tehsil_code, category_id, is_active
    )


@router.post(
    "/locations",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createLocationAlert",
)
async def create_alert(
    payload: AlertCreate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertResponse:
    service = AlertService(db)
    return await service.create_alert(payload, user)


@router.put(
    "/locations/bulk",
    response_model=BulkAlertResult,
    operation_id="bulkUpdateLocationAlerts",
)
async def bulk_update_alerts(
    payload: BulkAlertUpdate,
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> BulkAlertResult:
    """
    Create or update the active alert for each district or tehsil code.

    All locations are validated first, then changes are written in one
    transaction.
    """
    service = AlertService(db)
    return await service.bulk_upsert(payload, user)


@router.get(
    "/locations/{location_code}",
    response_model=List[AlertResponse],
    operation_id="getAlertsForLocation",
)
async def get_location_alerts(
    location_code: str,
    location_type: Optional[LocationType] = Query(None, alias="type"),
    category_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> List[AlertResponse]:
    service = AlertService(db)
    return await service.list_location_alerts(
        location_type, location_code, category_id, include_inactive
    )


@router.put(
    "/locations/{location_code}",
    response_model=AlertResponse,
    operation_id="updateLocationAlert",
)
async def update_location_alert(
    location_code: str,
    payload: LocationAlertUpdate,
    location_type: Optional[LocationType] = Query(None, alias="type"),
    category_id: Optional[str] = Query(None),
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> AlertResponse:
    service = AlertService(db)
    return await service.update_location_alert(
        location_type, location_code, category_id, payload, user
    )


@router.delete(
    "/locations/{location_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteLocationAlert",
)
async def delete_location_alert(
    location_code: str,
    location_type: Optional[LocationType] = Query(None, alias="type"),
    category_id: Optional[str] = Query(None),
    user: User = Depends(manage_alerts),
    db: Prisma = Depends(get_db),
) -> None:
    service = AlertService(db)
    await service.delete_location_alert(location_type, location_code, category_id, user)
