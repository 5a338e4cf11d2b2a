import logging
from typing import Any, List, Optional

from prisma.enums import (
    DonationStatus,
    GroupStatus,
    InventoryStatus,
    ItemCategory,
    ResupplyStatus,
)
from prisma.errors import UniqueViolationError
from prisma.models import InventoryEntry, ReliefGroup, User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.inventory.models import (
    InventoryEntryCreate,
    InventoryEntryResponse,
    InventoryEntryUpdate,
    InventoryListResponse,
    ItemTypeCreate,
    ItemTypeResponse,
)
from src.domains.inventory.stock import derive_status, validate_quantities
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    NotAuthorizedError,
    ResourceNotFoundError,
)
from src.shared.permissions import Permission, has_permission

logger = logging.getLogger(__name__)

INVENTORY_TARGET = "inventory_entry"
OPEN_RESUPPLY_STATUSES = [ResupplyStatus.PENDING, ResupplyStatus.APPROVED]
OPEN_DONATION_STATUSES = [DonationStatus.OFFERED, DonationStatus.ACCEPTED]
ENTRY_INCLUDE: dict[str, Any] = {
    "provider": {"include": {"group": {"include": {"representatives": True}}}},
    "itemType": True,
    "district": True,
    "tehsil": True,
    "village": True,
}


def is_group_member(user: User, group: ReliefGroup) -> bool:
    """The group's creator or one of its phone-verified representatives."""
    if group.createdById == user.id:
        return True
    rep_phones = {rep.phone for rep in group.representatives or []}
    return bool(user.phone) and user.phone in rep_phones


def can_manage_group(user: User, group: ReliefGroup) -> bool:
    if has_permission(user.roles, Permission.MANAGE_ALL_INVENTORY):
        return True
    return (
        group.status == GroupStatus.verified
        and has_permission(user.roles, Permission.MANAGE_INVENTORY)
        and is_group_member(user, group)
    )


def can_manage_entry(user: User, entry: InventoryEntry) -> bool:
    """Admins, reps of the owning verified group, or the creator of a standalone entry."""
    if has_permission(user.roles, Permission.MANAGE_ALL_INVENTORY):
        return True
    group = entry.provider.group if entry.provider else None
    if group is None:
        return entry.createdById == user.id
    return can_manage_group(user, group)


def ensure_can_manage_entry(user: User, entry: InventoryEntry) -> None:
    if not can_manage_entry(user, entry):
        raise NotAuthorizedError("You cannot manage this inventory entry")


async def get_entry_or_404(db: Prisma, entry_id: str) -> InventoryEntry:
    entry = await db.inventoryentry.find_unique(
        where={"id": entry_id}, include=ENTRY_INCLUDE  # type: ignore[arg-type]
    )
    if not entry:
        raise ResourceNotFoundError("Inventory entry")
    return entry


async def add_stock(db: Prisma, entry_id: str, quantity: int) -> None:
    """Increment both quantity columns in place, then refresh the derived status."""
    entry = await db.inventoryentry.update(
        where={"id": entry_id},
        data={
            "quantityTotal": {"increment": quantity},
            "quantityAvailable": {"increment": quantity},
        },
    )
    if not entry:
        raise ResourceNotFoundError("Inventory entry")
    new_status = derive_status(
        entry.quantityTotal, entry.quantityAvailable, entry.status
    )
    if new_status != entry.status:
        await db.inventoryentry.update(
            where={"id": entry_id}, data={"status": new_status}
        )


class InventoryService:
    """Item types and stock entries held by providers."""

    def __init__(self, db: Prisma):
        self.db = db

    # Item types

    async def list_item_types(
        self, category: Optional[ItemCategory] = None, include_inactive: bool = False
    ) -> List[ItemTypeResponse]:
        where: dict[str, Any] = {}
        if not include_inactive:
            where["isActive"] = True
        if category:
            where["category"] = category
        item_types = await self.db.inventoryitemtype.find_many(
            where=where,  # type: ignore[arg-type]
            order=[{"category": "asc"}, {"sortOrder": "asc"}, {"name": "asc"}],
        )
        return [ItemTypeResponse.from_prisma(t) for t in item_types]

    async def create_item_type(
        self, request: ItemTypeCreate, actor: User
    ) -> ItemTypeResponse:
        existing = await self.db.inventoryitemtype.find_first(
            where={"category": request.category, "subcategory": request.subcategory}
        )
        if existing:
            raise ConflictError("Item type with this category and subcategory already exists")

        try:
            item_type = await self.db.inventoryitemtype.create(
                data={
                    "category": request.category,
                    "subcategory": request.subcategory,
                    "name": request.name,
                    "description": request.description,
                    "icon": request.icon,
                    "unit": request.unit,
                    "isPerishable": request.is_perishable,
                    "shelfLifeDays": request.shelf_life_days,
                    "sortOrder": request.sort_order,
                }
            )
        except UniqueViolationError:
            raise ConflictError("Item type with this category and subcategory already exists")

        await log_event(
            self.db,
            action="item_type_created",
            target_type="inventory_item_type",
            actor_user_id=actor.id,
            target_id=item_type.id,
            metadata={"category": request.category.value, "subcategory": request.subcategory},
        )
        return ItemTypeResponse.from_prisma(item_type)

    # Entries

    async def list_entries(
        self,
        group_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        status_filter: Optional[InventoryStatus] = None,
        category: Optional[ItemCategory] = None,
        district_code: Optional[str] = None,
        tehsil_code: Optional[str] = None,
    ) -> InventoryListResponse:
        """
        Entries newest-updated first, each carrying its pending resupply
        requests and open donation offers.
        """
        where: dict[str, Any] = {}
        if group_id:
            provider = await self.db.provider.find_unique(where={"groupId": group_id})
            if not provider:
                return InventoryListResponse(inventory=[], total=0)
            where["providerId"] = provider.id
        elif provider_id:
            where["providerId"] = provider_id
        if status_filter:
            where["status"] = status_filter
        if category:
            where["itemType"] = {"is": {"category": category}}
        if district_code:
            where["districtCode"] = district_code
        if tehsil_code:
            where["tehsilCode"] = tehsil_code

        entries = await self.db.inventoryentry.find_many(
            where=where,  # type: ignore[arg-type]
            include={
                **ENTRY_INCLUDE,
                "resupplyRequests": {
                    "where": {"status": ResupplyStatus.PENDING},
                    "include": {"requester": True},
                },
                "donationOffers": {"where": {"status": DonationStatus.OFFERED}},
            },  # type: ignore[arg-type]
            order={"updatedAt": "desc"},
        )
        return InventoryListResponse(
            inventory=[InventoryEntryResponse.from_prisma(e) for e in entries],
            total=len(entries),
        )

    async def get_entry(self, entry_id: str) -> InventoryEntryResponse:
        entry = await self.db.inventoryentry.find_unique(
            where={"id": entry_id},
            include={
                **ENTRY_INCLUDE,
                "resupplyRequests": {
                    "include": {"requester": True},
                    "order_by": {"createdAt": "desc"},
                },
                "donationOffers": {"order_by": {"createdAt": "desc"}},
            },  # type: ignore[arg-type]
        )
        if not entry:
            raise ResourceNotFoundError("Inventory entry")
        return InventoryEntryResponse.from_prisma(entry)

    async def create_entry(
        self, request: InventoryEntryCreate, user: User
    ) -> InventoryEntryResponse:
        """
        Record stock for the caller's relief group, or for a standalone
        provider when no group is given.

        Raises:
            ResourceNotFoundError: Unknown item type, location or group
            InvalidDataError: Bad quantities or missing contact details
            NotAuthorizedError: Caller does not manage the group's inventory
        """
        item_type = await self.db.inventoryitemtype.find_unique(
            where={"id": request.item_type_id}
        )
        if not item_type:
            raise ResourceNotFoundError("Item type")

        tehsil = await self.db.tehsil.find_unique(where={"code": request.tehsil_code})
        if not tehsil:
            raise ResourceNotFoundError("Tehsil")
        if tehsil.districtCode != request.district_code:
            raise InvalidDataError("Tehsil does not belong to the selected district")
        if request.village_code:
            village = await self.db.village.find_unique(
                where={"code": request.village_code}
            )
            if not village or village.tehsilCode != request.tehsil_code:
                raise InvalidDataError("Village does not belong to the selected tehsil")

        quantity_available = (
            request.quantity_total
            if request.quantity_available is None
            else request.quantity_available
        )
        validate_quantities(request.quantity_total, quantity_available)

        if not request.contact_type or not request.contact_value:
            raise InvalidDataError("Contact information is required")

        group = None
        if request.group_id:
            group = await self.db.reliefgroup.find_unique(
                where={"id": request.group_id}, include={"representatives": True}
            )
            if not group:
                raise ResourceNotFoundError("Relief group")
            if not can_manage_group(user, group):
                raise NotAuthorizedError(
                    "Only representatives of a verified group can add its inventory"
                )

        async with self.db.tx() as transaction:
            provider = None
            if group:
                provider = await transaction.provider.find_unique(
                    where={"groupId": group.id}
                )
            if not provider:
                provider = await transaction.provider.create(
                    data={
                        "groupId": group.id if group else None,
                        "alias": request.alias,
                        "contactType": request.contact_type,
                        "contactValue": request.contact_value,
                        "contactVisibility": request.contact_visibility,
                    }
                )

            entry = await transaction.inventoryentry.create(
                data={
                    "providerId": provider.id,
                    "itemTypeId": item_type.id,
                    "districtCode": request.district_code,
                    "tehsilCode": request.tehsil_code,
                    "villageCode": request.village_code,
                    "quantityTotal": request.quantity_total,
                    "quantityAvailable": quantity_available,
                    "condition": request.condition,
                    "availabilityMode": request.availability_mode,
                    "availableFrom": request.available_from,
                    "availableUntil": request.available_until,
                    "responseHours": request.response_hours,
                    "batchNumber": request.batch_number,
                    "expiryDate": request.expiry_date,
                    "storageLocation": request.storage_location,
                    "status": derive_status(request.quantity_total, quantity_available),
                    "visibility": request.visibility,
                    "notes": request.notes,
                    "evidenceUrls": request.evidence_urls,
                    "createdById": user.id,
                }
            )

        await log_event(
            self.db,
            action="inventory_entry_created",
            target_type=INVENTORY_TARGET,
            actor_user_id=user.id,
            target_id=entry.id,
            metadata={
                "item_type_id": item_type.id,
                "quantity_total": request.quantity_total,
                "group_id": request.group_id,
            },
        )
        logger.info(f"Inventory entry {entry.id} created by {user.id}")
        return InventoryEntryResponse.from_prisma(await get_entry_or_404(self.db, entry.id))

    async def update_entry(
        self, entry_id: str, request: InventoryEntryUpdate, user: User
    ) -> InventoryEntryResponse:
        entry = await get_entry_or_404(self.db, entry_id)
        ensure_can_manage_entry(user, entry)

        quantity_total = (
            entry.quantityTotal
            if request.quantity_total is None
            else request.quantity_total
        )
        quantity_available = (
            entry.quantityAvailable
            if request.quantity_available is None
            else request.quantity_available
        )
        validate_quantities(quantity_total, quantity_available)

        data: dict[str, Any] = {}
        for field, column in (
            ("condition", "condition"),
            ("availability_mode", "availabilityMode"),
            ("available_from", "availableFrom"),
            ("available_until", "availableUntil"),
            ("response_hours", "responseHours"),
            ("batch_number", "batchNumber"),
            ("expiry_date", "expiryDate"),
            ("storage_location", "storageLocation"),
            ("visibility", "visibility"),
            ("notes", "notes"),
            ("evidence_urls", "evidenceUrls"),
        ):
            value = getattr(request, field)
            if value is not None:
                data[column] = value

        quantities_changed = (
            quantity_total != entry.quantityTotal
            or quantity_available != entry.quantityAvailable
        )
        if quantities_changed:
            data["quantityTotal"] = quantity_total
            data["quantityAvailable"] = quantity_available
        if request.status is not None:
            data["status"] = request.status
        elif quantities_changed:
            data["status"] = derive_status(
                quantity_total, quantity_available, entry.status
            )

        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        await self.db.inventoryentry.update(where={"id": entry_id}, data=data)  # type: ignore[arg-type]
        await log_event(
            self.db,
            action="inventory_entry_updated",
            target_type=INVENTORY_TARGET,
            actor_user_id=user.id,
            target_id=entry_id,
            metadata=request.model_dump(mode="json", exclude_none=True),
        )
        return InventoryEntryResponse.from_prisma(await get_entry_or_404(self.db, entry_id))

    async def delete_entry(self, entry_id: str, user: User) -> None:
        """Entries with open resupply requests or donation offers cannot be removed."""
        entry = await get_entry_or_404(self.db, entry_id)
        ensure_can_manage_entry(user, entry)

        open_requests = await self.db.resupplyrequest.count(
            where={"entryId": entry_id, "status": {"in": OPEN_RESUPPLY_STATUSES}}
        )
        open_offers = await self.db.donationoffer.count(
            where={"entryId": entry_id, "status": {"in": OPEN_DONATION_STATUSES}}
        )
        if open_requests or open_offers:
            raise InvalidDataError(
                "Cannot delete inventory with pending resupply requests or donation offers"
            )

        await self.db.inventoryentry.delete(where={"id": entry_id})
        await log_event(
            self.db,
            action="inventory_entry_deleted",
            target_type=INVENTORY_TARGET,
            actor_user_id=user.id,
            target_id=entry_id,
        )
