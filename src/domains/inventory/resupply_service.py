import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from prisma.enums import ResupplyStatus
from prisma.models import ResupplyRequest, User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.inventory.models import (
    ResupplyCreate,
    ResupplyResponse,
    ResupplyTransition,
)
from src.domains.inventory.service import (
    add_stock,
    can_manage_entry,
    ensure_can_manage_entry,
    get_entry_or_404,
)
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    NotAuthorizedError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

RESUPPLY_TARGET = "resupply_request"
RESUPPLY_TRANSITIONS: dict[ResupplyStatus, set[ResupplyStatus]] = {
    ResupplyStatus.PENDING: {
        ResupplyStatus.APPROVED,
        ResupplyStatus.REJECTED,
        ResupplyStatus.CANCELLED,
    },
    ResupplyStatus.APPROVED: {ResupplyStatus.FULFILLED, ResupplyStatus.CANCELLED},
}


def can_transition(current: ResupplyStatus, target: ResupplyStatus) -> bool:
    return target in RESUPPLY_TRANSITIONS.get(current, set())


class ResupplyService:
    """Requests to top up an inventory entry, and their review."""

    def __init__(self, db: Prisma):
        self.db = db

    async def list_requests(
        self, entry_id: str, status_filter: Optional[ResupplyStatus] = None
    ) -> List[ResupplyResponse]:
        await get_entry_or_404(self.db, entry_id)
        where: dict[str, Any] = {"entryId": entry_id}
        if status_filter:
            where["status"] = status_filter
        requests = await self.db.resupplyrequest.find_many(
            where=where,  # type: ignore[arg-type]
            include={"requester": True},
            order={"createdAt": "desc"},
        )
        return [ResupplyResponse.from_prisma(r) for r in requests]

    async def create_request(
        self, entry_id: str, request: ResupplyCreate, user: User
    ) -> ResupplyResponse:
        await get_entry_or_404(self.db, entry_id)
        pending = await self.db.resupplyrequest.find_first(
            where={
                "entryId": entry_id,
                "requesterId": user.id,
                "status": ResupplyStatus.PENDING,
            }
        )
        if pending:
            raise InvalidDataError(
                "You already have a pending resupply request for this item"
            )

        created = await self.db.resupplyrequest.create(
            data={
                "entryId": entry_id,
                "requesterId": user.id,
                "quantityRequested": request.quantity_requested,
                "urgency": request.urgency,
                "reason": request.reason,
                "preferredDeliveryDate": request.preferred_delivery_date,
            },
            include={"requester": True},
        )
        await log_event(
            self.db,
            action="resupply_requested",
            target_type=RESUPPLY_TARGET,
            actor_user_id=user.id,
            target_id=created.id,
            metadata={
                "entry_id": entry_id,
                "quantity": request.quantity_requested,
                "urgency": request.urgency.value,
            },
        )
        return ResupplyResponse.from_prisma(created)

    async def transition(
        self,
        entry_id: str,
        request_id: str,
        payload: ResupplyTransition,
        user: User,
    ) -> ResupplyResponse:
        """
        Move a request through its lifecycle.

        PENDING may become APPROVED, REJECTED or CANCELLED; APPROVED may become
        FULFILLED or CANCELLED. Requesters may cancel their own requests; every
        other change needs the entry's owner or an admin. Fulfilling a request
        adds its quantity to the entry's stock.
        """
        entry = await get_entry_or_404(self.db, entry_id)
        existing = await self._get_for_entry(entry_id, request_id)

        if not can_transition(existing.status, payload.status):
            raise InvalidDataError(
                f"Cannot change resupply request from {existing.status.value} "
                f"to {payload.status.value}"
            )
        own_cancel = (
            payload.status == ResupplyStatus.CANCELLED
            and existing.requesterId == user.id
        )
        if not own_cancel:
            ensure_can_manage_entry(user, entry)

        now = datetime.now(timezone.utc)
        async with self.db.tx() as transaction:
            moved = await transaction.resupplyrequest.update_many(
                where={"id": request_id, "status": existing.status},
                data={
                    "status": payload.status,
                    "reviewerId": user.id,
                    "reviewedAt": now,
                    "reviewNotes": payload.review_notes,
                },
            )
            if moved == 0:
                raise ConflictError(
                    "Resupply request was updated by someone else. Reload and retry"
                )
            if payload.status == ResupplyStatus.FULFILLED:
                await add_stock(transaction, entry_id, existing.quantityRequested)

        updated = await self.db.resupplyrequest.find_unique(
            where={"id": request_id}, include={"requester": True}
        )

        await log_event(
            self.db,
            action=f"resupply_{payload.status.value.lower()}",
            target_type=RESUPPLY_TARGET,
            actor_user_id=user.id,
            target_id=request_id,
            metadata={
                "entry_id": entry_id,
                "previous_status": existing.status.value,
                "notes": payload.review_notes,
            },
        )
        logger.info(
            f"Resupply request {request_id} moved to {payload.status.value} by {user.id}"
        )
        return ResupplyResponse.from_prisma(updated or existing)

    async def delete_request(self, entry_id: str, request_id: str, user: User) -> None:
        entry = await get_entry_or_404(self.db, entry_id)
        existing = await self._get_for_entry(entry_id, request_id)
        if existing.requesterId != user.id and not can_manage_entry(user, entry):
            raise NotAuthorizedError("You cannot delete this resupply request")
        if existing.status != ResupplyStatus.PENDING:
            raise InvalidDataError("Only pending resupply requests can be deleted")

        await self.db.resupplyrequest.delete(where={"id": request_id})
        await log_event(
            self.db,
            action="resupply_deleted",
            target_type=RESUPPLY_TARGET,
            actor_user_id=user.id,
            target_id=request_id,
            metadata={"entry_id": entry_id},
        )

    async def _get_for_entry(self, entry_id: str, request_id: str) -> ResupplyRequest:
        existing = await self.db.resupplyrequest.find_unique(
            where={"id": request_id}, include={"requester": True}
        )
        if not existing:
            raise ResourceNotFoundError("Resupply request")
        if existing.entryId != entry_id:
            raise InvalidDataError(
                "Resupply request does not belong to this inventory entry"
            )
        return existing
