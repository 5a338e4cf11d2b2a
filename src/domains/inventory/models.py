from datetime import datetime
from typing import List, Optional

from prisma.enums import (
    AvailabilityMode,
    ContactType,
    DonationStatus,
    InventoryStatus,
    ItemCategory,
    ItemCondition,
    ResupplyStatus,
    UrgencyLevel,
    Visibility,
)
from prisma.models import (
    DonationOffer,
    InventoryEntry,
    InventoryItemType,
    Provider,
    ResupplyRequest,
)
from pydantic import BaseModel, Field, model_validator

from src.domains.admin.models import UserSummary


# Item types
class ItemTypeResponse(BaseModel):
    id: str
    category: ItemCategory
    subcategory: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    unit: str
    is_perishable: bool
    shelf_life_days: Optional[int] = None
    sort_order: int
    is_active: bool

    @classmethod
    def from_prisma(cls, item_type: InventoryItemType) -> "ItemTypeResponse":
        return cls(
            id=item_type.id,
            category=item_type.category,
            subcategory=item_type.subcategory,
            name=item_type.name,
            description=item_type.description,
            icon=item_type.icon,
            unit=item_type.unit,
            is_perishable=item_type.isPerishable,
            shelf_life_days=item_type.shelfLifeDays,
            sort_order=item_type.sortOrder,
            is_active=item_type.isActive,
        )


class ItemTypeCreate(BaseModel):
    category: ItemCategory
    subcategory: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    icon: Optional[str] = None
    unit: str = Field("pieces", min_length=1, max_length=30)
    is_perishable: bool = False
    shelf_life_days: Optional[int] = Field(None, gt=0)
    sort_order: int = 0


# Providers
class ProviderResponse(BaseModel):
    id: str
    group_id: Optional[str] = None
    alias: Optional[str] = None
    contact_type: ContactType
    contact_value: str
    contact_visibility: Visibility

    @classmethod
    def from_prisma(cls, provider: Provider) -> "ProviderResponse":
        return cls(
            id=provider.id,
            group_id=provider.groupId,
            alias=provider.alias,
            contact_type=provider.contactType,
            contact_value=provider.contactValue,
            contact_visibility=provider.contactVisibility,
        )


# Resupply requests
class ResupplyResponse(BaseModel):
    id: str
    entry_id: str
    requester: Optional[UserSummary] = None
    requester_id: str
    quantity_requested: int
    urgency: UrgencyLevel
    reason: Optional[str] = None
    preferred_delivery_date: Optional[datetime] = None
    status: ResupplyStatus
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_prisma(cls, request: ResupplyRequest) -> "ResupplyResponse":
        return cls(
            id=request.id,
            entry_id=request.entryId,
            requester=(
                UserSummary.from_prisma(request.requester) if request.requester else None
            ),
            requester_id=request.requesterId,
            quantity_requested=request.quantityRequested,
            urgency=request.urgency,
            reason=request.reason,
            preferred_delivery_date=request.preferredDeliveryDate,
            status=request.status,
            reviewer_id=request.reviewerId,
            reviewed_at=request.reviewedAt,
            review_notes=request.reviewNotes,
            created_at=request.createdAt,
        )


class ResupplyCreate(BaseModel):
    quantity_requested: int = Field(..., gt=0)
    urgency: UrgencyLevel = UrgencyLevel.normal
    reason: Optional[str] = Field(None, max_length=1000)
    preferred_delivery_date: Optional[datetime] = None


class ResupplyTransition(BaseModel):
    status: ResupplyStatus
    review_notes: Optional[str] = Field(None, max_length=1000)


# Donation offers
class DonationResponse(BaseModel):
    id: str
    entry_id: str
    donor_id: str
    donor_name: str
    donor_contact: str
    quantity_offered: int
    condition: ItemCondition
    available_date: Optional[datetime] = None
    delivery_method: Optional[str] = None
    notes: Optional[str] = None
    status: DonationStatus
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_prisma(cls, offer: DonationOffer) -> "DonationResponse":
        return cls(
            id=offer.id,
            entry_id=offer.entryId,
            donor_id=offer.donorId,
            donor_name=offer.donorName,
            donor_contact=offer.donorContact,
            quantity_offered=offer.quantityOffered,
            condition=offer.condition,
            available_date=offer.availableDate,
            delivery_method=offer.deliveryMethod,
            notes=offer.notes,
            status=offer.status,
            reviewer_id=offer.reviewerId,
            reviewed_at=offer.reviewedAt,
            review_notes=offer.reviewNotes,
            created_at=offer.createdAt,
        )


class DonationCreate(BaseModel):
    donor_name: str = Field(..., min_length=1, max_length=120)
    donor_contact: str = Field(..., min_length=1, max_length=120)
    quantity_offered: int = Field(..., gt=0)
    condition: ItemCondition = ItemCondition.NEW
    available_date: Optional[datetime] = None
    delivery_method: Optional[str] = Field(None, max_length=120)
    notes: Optional[str] = Field(None, max_length=1000)


class DonationTransition(BaseModel):
    status: DonationStatus
    review_notes: Optional[str] = Field(None, max_length=1000)


# Inventory entries
class InventoryEntryResponse(BaseModel):
    id: str
    provider: Optional[ProviderResponse] = None
    item_type: Optional[ItemTypeResponse] = None
    district_code: str
    district_name: Optional[str] = None
    tehsil_code: str
    tehsil_name: Optional[str] = None
    village_code: Optional[str] = None
    village_name: Optional[str] = None
    quantity_total: int
    quantity_available: int
    condition: ItemCondition
    availability_mode: AvailabilityMode
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    response_hours: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    storage_location: Optional[str] = None
    status: InventoryStatus
    visibility: Visibility
    notes: Optional[str] = None
    evidence_urls: List[str] = []
    resupply_requests: List[ResupplyResponse] = []
    donation_offers: List[DonationResponse] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_prisma(cls, entry: InventoryEntry) -> "InventoryEntryResponse":
        return cls(
            id=entry.id,
            provider=ProviderResponse.from_prisma(entry.provider) if entry.provider else None,
            item_type=(
                ItemTypeResponse.from_prisma(entry.itemType) if entry.itemType else None
            ),
            district_code=entry.districtCode,
            district_name=entry.district.name if entry.district else None,
            tehsil_code=entry.tehsilCode,
            tehsil_name=entry.tehsil.name if entry.tehsil else None,
            village_code=entry.villageCode,
            village_name=entry.village.name if entry.village else None,
            quantity_total=entry.quantityTotal,
            quantity_available=entry.quantityAvailable,
            condition=entry.condition,
            availability_mode=entry.availabilityMode,
            available_from=entry.availableFrom,
            available_until=entry.availableUntil,
            response_hours=entry.responseHours,
            batch_number=entry.batchNumber,
            expiry_date=entry.expiryDate,
            storage_location=entry.storageLocation,
            status=entry.status,
            visibility=entry.visibility,
            notes=entry.notes,
            evidence_urls=list(entry.evidenceUrls or []),
            resupply_requests=[
                ResupplyResponse.from_prisma(r) for r in entry.resupplyRequests or []
            ],
            donation_offers=[
                DonationResponse.from_prisma(d) for d in entry.donationOffers or []
            ],
            created_at=entry.createdAt,
            updated_at=entry.updatedAt,
        )


class InventoryListResponse(BaseModel):
    inventory: List[InventoryEntryResponse]
    total: int


class InventoryEntryCreate(BaseModel):
    group_id: Optional[str] = None
    item_type_id: str = Field(..., min_length=1)
    district_code: str = Field(..., min_length=1)
    tehsil_code: str = Field(..., min_length=1)
    village_code: Optional[str] = None
    quantity_total: int = Field(..., gt=0)
    quantity_available: Optional[int] = None
    condition: ItemCondition = ItemCondition.NEW
    availability_mode: AvailabilityMode = AvailabilityMode.IMMEDIATE
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    response_hours: Optional[int] = Field(None, ge=0)
    batch_number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    storage_location: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    notes: Optional[str] = None
    evidence_urls: List[str] = []
    alias: Optional[str] = None
    contact_type: Optional[ContactType] = None
    contact_value: Optional[str] = None
    contact_visibility: Visibility = Visibility.COORDINATORS

    @model_validator(mode="after")
    def check_window(self) -> "InventoryEntryCreate":
        if (
            self.available_from
            and self.available_until
            and self.available_until < self.available_from
        ):
            raise ValueError("available_until must be after available_from")
        return self


class InventoryEntryUpdate(BaseModel):
    quantity_total: Optional[int] = None
    quantity_available: Optional[int] = None
    condition: Optional[ItemCondition] = None
    availability_mode: Optional[AvailabilityMode] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    response_hours: Optional[int] = Field(None, ge=0)
    batch_number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    storage_location: Optional[str] = None
    status: Optional[InventoryStatus] = None
    visibility: Optional[Visibility] = None
    notes: Optional[str] = None
    evidence_urls: Optional[List[str]] = None
