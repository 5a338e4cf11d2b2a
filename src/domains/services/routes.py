from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.services.models import (
    ServiceCreate,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdate,
)
from src.domains.services.service import CatalogService
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/services", tags=["Services"])
admin_router = APIRouter(prefix="/admin/services", tags=["Admin Services"])


@router.get("", response_model=List[ServiceResponse], operation_id="listServices")
async def list_services(db: Prisma = Depends(get_db)) -> List[ServiceResponse]:
    """Every catalog entry, for the public request form."""
    service = CatalogService(db)
    return await service.list_public()


@admin_router.get(
    "", response_model=ServiceListResponse, operation_id="adminListServices"
)
async def admin_list_services(
    broad_category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    db: Prisma = Depends(get_db),
) -> ServiceListResponse:
    service = CatalogService(db)
    return await service.list_services(broad_category, limit, offset)


@admin_router.get(
    "/{service_id}", response_model=ServiceResponse, operation_id="adminGetService"
)
async def admin_get_service(
    service_id: str,
    user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    db: Prisma = Depends(get_db),
) -> ServiceResponse:
    service = CatalogService(db)
    return await service.get_service(service_id)


@admin_router.post(
    "",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createService",
)
async def create_service(
    payload: ServiceCreate,
    user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    db: Prisma = Depends(get_db),
) -> ServiceResponse:
    """
    Add a catalog entry.

    Returns 409 when the (broad_category, subcategory) pair already exists.
    """
    service = CatalogService(db)
    return await service.create_service(payload, user)


@admin_router.put(
    "/{service_id}", response_model=ServiceResponse, operation_id="updateService"
)
async def update_service(
    service_id: str,
    payload: ServiceUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    db: Prisma = Depends(get_db),
) -> ServiceResponse:
    service = CatalogService(db)
    return await service.update_service(service_id, payload, user)


@admin_router.delete(
    "/{service_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteService",
)
async def delete_service(
    service_id: str,
    user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    db: Prisma = Depends(get_db),
) -> None:
    service = CatalogService(db)
    await service.delete_service(service_id, user)
