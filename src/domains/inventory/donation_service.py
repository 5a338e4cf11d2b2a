import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from prisma.enums import DonationStatus
from prisma.models import DonationOffer, User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.inventory.models import (
    DonationCreate,
    DonationResponse,
    DonationTransition,
)
from src.domains.inventory.service import (
    add_stock,
    ensure_can_manage_entry,
    get_entry_or_404,
)
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

DONATION_TARGET = "donation_offer"
DONATION_TRANSITIONS: dict[DonationStatus, set[DonationStatus]] = {
    DonationStatus.OFFERED: {
        DonationStatus.ACCEPTED,
        DonationStatus.REJECTED,
        DonationStatus.CANCELLED,
    },
    DonationStatus.ACCEPTED: {DonationStatus.DELIVERED, DonationStatus.CANCELLED},
}


def can_transition(current: DonationStatus, target: DonationStatus) -> bool:
    return target in DONATION_TRANSITIONS.get(current, set())


class DonationService:
    def __init__(self, db: Prisma):
        self.db = db

    async def list_offers(
        self, entry_id: str, status_filter: Optional[DonationStatus] = None
    ) -> List[DonationResponse]:
        await get_entry_or_404(self.db, entry_id)
        where: dict[str, Any] = {"entryId": entry_id}
        if status_filter:
            where["status"] = status_filter
        offers = await self.db.donationoffer.find_many(
            where=where,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
        )
        return [DonationResponse.from_prisma(o) for o in offers]

    async def create_offer(
        self, entry_id: str, request: DonationCreate, user: User
    ) -> DonationResponse:
        await get_entry_or_404(self.db, entry_id)
        if not request.donor_name.strip() or not request.donor_contact.strip():
            raise InvalidDataError("Donor name and contact are required")

        open_offer = await self.db.donationoffer.find_first(
            where={
                "entryId": entry_id,
                "donorId": user.id,
                "status": DonationStatus.OFFERED,
            }
        )
        if open_offer:
            raise InvalidDataError("You already have a pending donation offer for this item")

        offer = await self.db.donationoffer.create(
            data={
                "entryId": entry_id,
                "donorId": user.id,
                "donorName": request.donor_name.strip(),
                "donorContact": request.donor_contact.strip(),
                "quantityOffered": request.quantity_offered,
                "condition": request.condition,
                "availableDate": request.available_date,
                "deliveryMethod": request.delivery_method,
                "notes": request.notes,
            }
        )
        await log_event(
            self.db,
            action="donation_offered",
            target_type=DONATION_TARGET,
            actor_user_id=user.id,
            target_id=offer.id,
            metadata={"entry_id": entry_id, "quantity": request.quantity_offered},
        )
        return DonationResponse.from_prisma(offer)

    async def transition(
        self,
        entry_id: str,
        offer_id: str,
        payload: DonationTransition,
        user: User,
    ) -> DonationResponse:
        """Donors may cancel their own offers; delivery adds the quantity to stock."""
        entry = await get_entry_or_404(self.db, entry_id)
        existing = await self._get_for_entry(entry_id, offer_id)

        if not can_transition(existing.status, payload.status):
            raise InvalidDataError(
                f"Cannot change donation offer from {existing.status.value} "
                f"to {payload.status.value}"
            )
        own_cancel = (
            payload.status == DonationStatus.CANCELLED and existing.donorId == user.id
        )
        if not own_cancel:
            ensure_can_manage_entry(user, entry)

        async with self.db.tx() as transaction:
            moved = await transaction.donationoffer.update_many(
                where={"id": offer_id, "status": existing.status},
                data={
                    "status": payload.status,
                    "reviewerId": user.id,
                    "reviewedAt": datetime.now(timezone.utc),
                    "reviewNotes": payload.review_notes,
                },
            )
            if moved == 0:
                raise ConflictError(
                    "Donation offer was updated by someone else. Reload and retry"
                )
            if payload.status == DonationStatus.DELIVERED:
                await add_stock(transaction, entry_id, existing.quantityOffered)

        updated = await self.db.donationoffer.find_unique(where={"id": offer_id})

        await log_event(
            self.db,
            action=f"donation_{payload.status.value.lower()}",
            target_type=DONATION_TARGET,
            actor_user_id=user.id,
            target_id=offer_id,
            metadata={
                "entry_id": entry_id,
                "previous_status": existing.status.value,
                "notes": payload.review_notes,
            },
        )
        return DonationResponse.from_prisma(updated or existing)

    async def _get_for_entry(self, entry_id: str, offer_id: str) -> DonationOffer:
        offer = await self.db.donationoffer.find_unique(where={"id": offer_id})
        if not offer:
            raise ResourceNotFoundError("Donation offer")
        if offer.entryId != entry_id:
            raise InvalidDataError("Donation offer does not belong to this inventory entry")
        return offer
