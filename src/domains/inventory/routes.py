from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from prisma.enums import DonationStatus, InventoryStatus, ItemCategory, ResupplyStatus
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.auth.dependencies import get_current_user
from src.domains.inventory.donation_service import DonationService
from src.domains.inventory.models import (
    DonationCreate,
    DonationResponse,
    DonationTransition,
    InventoryEntryCreate,
    InventoryEntryResponse,
    InventoryEntryUpdate,
    InventoryListResponse,
    ItemTypeCreate,
    ItemTypeResponse,
    ResupplyCreate,
    ResupplyResponse,
    ResupplyTransition,
)
from src.domains.inventory.resupply_service import ResupplyService
from src.domains.inventory.service import InventoryService
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/inventory", tags=["Inventory"])
item_types_router = APIRouter(prefix="/inventory-item-types", tags=["Inventory"])


# Item types


@item_types_router.get(
    "", response_model=List[ItemTypeResponse], operation_id="listInventoryItemTypes"
)
async def list_item_types(
    category: Optional[ItemCategory] = Query(None),
    include_inactive: bool = Query(False),
    db: Prisma = Depends(get_db),
) -> List[ItemTypeResponse]:
    service = InventoryService(db)
    return await service.list_item_types(category, include_inactive)


@item_types_router.post(
    "",
    response_model=ItemTypeResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createInventoryItemType",
)
async def create_item_type(
    payload: ItemTypeCreate,
    user: User = Depends(require_permission(Permission.MANAGE_ITEM_TYPES)),
    db: Prisma = Depends(get_db),
) -> ItemTypeResponse:
    service = InventoryService(db)
    return await service.create_item_type(payload, user)


# Entries


@router.get("", response_model=InventoryListResponse, operation_id="listInventory")
async def list_inventory(
    group_id: Optional[str] = Query(None),
    provider_id: Optional[str] = Query(None),
    status_filter: Optional[InventoryStatus] = Query(None, alias="status"),
    category: Optional[ItemCategory] = Query(None),
    district_code: Optional[str] = Query(None),
    tehsil_code: Optional[str] = Query(None),
    db: Prisma = Depends(get_db),
) -> InventoryListResponse:
    service = InventoryService(db)
    return await service.list_entries(
        group_id, provider_id, status_filter, category, district_code, tehsil_code
    )


@router.post(
    "",
    response_model=InventoryEntryResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createInventoryEntry",
)
async def create_inventory_entry(
    payload: InventoryEntryCreate,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> InventoryEntryResponse:
    """
    Add stock. With group_id the entry belongs to that group's provider,
    which is created on first use; otherwise a standalone provider is made.
    """
    service = InventoryService(db)
    return await service.create_entry(payload, user)


@router.get(
    "/{entry_id}",
    response_model=InventoryEntryResponse,
    operation_id="getInventoryEntry",
)
async def get_inventory_entry(
    entry_id: str, db: Prisma = Depends(get_db)
) -> InventoryEntryResponse:
    service = InventoryService(db)
    return await service.get_entry(entry_id)


@router.patch(
    "/{entry_id}",
    response_model=InventoryEntryResponse,
    operation_id="updateInventoryEntry",
)
async def update_inventory_entry(
    entry_id: str,
    payload: InventoryEntryUpdate,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> InventoryEntryResponse:
    service = InventoryService(db)
    return await service.update_entry(entry_id, payload, user)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteInventoryEntry",
)
async def delete_inventory_entry(
    entry_id: str,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> None:
    service = InventoryService(db)
    await service.delete_entry(entry_id, user)


# Resupply requests


@router.get(
    "/{entry_id}/resupply",
    response_model=List[ResupplyResponse],
    operation_id="listResupplyRequests",
)
async def list_resupply_requests(
    entry_id: str,
    status_filter: Optional[ResupplyStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> List[ResupplyResponse]:
    service = ResupplyService(db)
    return await service.list_requests(entry_id, status_filter)


@router.post(
    "/{entry_id}/resupply",
    response_model=ResupplyResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createResupplyRequest",
)
async def create_resupply_request(
    entry_id: str,
    payload: ResupplyCreate,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> ResupplyResponse:
    service = ResupplyService(db)
    return await service.create_request(entry_id, payload, user)


@router.patch(
    "/{entry_id}/resupply/{request_id}",
    response_model=ResupplyResponse,
    operation_id="updateResupplyRequestStatus",
)
async def update_resupply_request(
    entry_id: str,
    request_id: str,
    payload: ResupplyTransition,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> ResupplyResponse:
    service = ResupplyService(db)
    return await service.transition(entry_id, request_id, payload, user)


@router.delete(
    "/{entry_id}/resupply/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteResupplyRequest",
)
async def delete_resupply_request(
    entry_id: str,
    request_id: str,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> None:
    service = ResupplyService(db)
    await service.delete_request(entry_id, request_id, user)


# Donation offers


@router.get(
    "/{entry_id}/donations",
    response_model=List[DonationResponse],
    operation_id="listDonationOffers",
)
async def list_donation_offers(
    entry_id: str,
    status_filter: Optional[DonationStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> List[DonationResponse]:
    service = DonationService(db)
    return await service.list_offers(entry_id, status_filter)


@router.post(
    "/{entry_id}/donations",
    response_model=DonationResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createDonationOffer",
)
async def create_donation_offer(
    entry_id: str,
    payload: DonationCreate,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> DonationResponse:
    service = DonationService(db)
    return await service.create_offer(entry_id, payload, user)


@router.patch(
    "/{entry_id}/donations/{offer_id}",
    response_model=DonationResponse,
    operation_id="updateDonationOfferStatus",
)
async def update_donation_offer(
    entry_id: str,
    offer_id: str,
    payload: DonationTransition,
    user: User = Depends(get_current_user),
    db: Prisma = Depends(get_db),
) -> DonationResponse:
    service = DonationService(db)
    return await service.transition(entry_id, offer_id, payload, user)
