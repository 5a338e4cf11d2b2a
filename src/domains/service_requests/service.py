import logging
from datetime import datetime, timezone
from typing import Any, Optional

from prisma.enums import GroupStatus, ServiceRequestStatus
from prisma.errors import UniqueViolationError
from prisma.models import ServiceRequest, User

from prisma import Json, Prisma
from src.domains.audit.service import log_event
from src.domains.service_requests.models import (
    ServiceRequestConfirmation,
    ServiceRequestCreate,
    ServiceRequestCreated,
    ServiceRequestListResponse,
    ServiceRequestResponse,
    ServiceRequestUpdate,
)
from src.shared.exceptions import ConflictError, InvalidDataError, ResourceNotFoundError
from src.shared.models import Pagination

logger = logging.getLogger(__name__)

REQUEST_NUMBER_PREFIX = "PFR"
SEQUENCE_WIDTH = 4
MAX_NUMBER_ATTEMPTS = 5


def request_number_prefix(now: Optional[datetime] = None) -> str:
    """PFR followed by the UTC date, e.g. PFR20250901."""
    now = now or datetime.now(timezone.utc)
    return f"{REQUEST_NUMBER_PREFIX}{now.strftime('%Y%m%d')}"


def format_request_number(prefix: str, sequence: int) -> str:
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


class ServiceRequestService:
    """Citizen requests for help, numbered per day."""

    def __init__(self, db: Prisma):
        self.db = db

    async def next_request_number(self, now: Optional[datetime] = None) -> str:
        """
        Next free number for the day.

        Suffixes are compared as integers; past 9999 they grow wider and no
        longer sort as text.
        """
        prefix = request_number_prefix(now)
        todays = await self.db.servicerequest.find_many(
            where={"requestNumber": {"startswith": prefix}}
        )
        sequences = [
            int(suffix)
            for suffix in (r.requestNumber[len(prefix):] for r in todays)
            if suffix.isdigit()
        ]
        return format_request_number(prefix, max(sequences, default=0) + 1)

    async def create_request(
        self, request: ServiceRequestCreate
    ) -> ServiceRequestCreated:
        """
        Validate and store a citizen's request.

        Location ids and names missing from the form are filled from the
        selected village. Two submissions racing for the same number hit the
        unique constraint; the loser retries with the next sequence.
        """
        name = (request.name or "").strip()
        phone = (request.phone or "").strip()
        if not name:
            raise InvalidDataError("Requester name is required")
        if not phone:
            raise InvalidDataError("Phone number is required")
        if not request.admin.village_id:
            raise InvalidDataError("Village selection is required")
        if not request.needs:
            raise InvalidDataError("At least one service must be selected")

        village = await self.db.village.find_unique(
            where={"code": request.admin.village_id},
            include={"tehsil": True, "district": True},
        )
        if not village:
            raise InvalidDataError("Selected village not found")

        data: dict[str, Any] = {
            "requesterName": name,
            "requesterPhone": phone,
            "requesterAltPhone": request.alternate_number or None,
            "villageCode": village.code,
            "villageName": request.admin.village_text or village.name,
            "tehsilCode": request.admin.tehsil_id or village.tehsilCode,
            "tehsilName": village.tehsil.name if village.tehsil else "",
            "districtCode": request.admin.district_id or village.districtCode,
            "districtName": village.district.name if village.district else "",
            "latitude": request.location.lat,
            "longitude": request.location.lng,
            "locationAccuracy": request.location.accuracy,
            "locationSource": request.location.source,
            "requestedServices": request.needs,
            "additionalNotes": request.note or None,
            "language": request.lang or "pa",
            "networkQuality": request.client.net or "good",
            "clientTimestamp": request.client.ts,
        }
        if request.details is not None:
            data["serviceDetails"] = Json(request.details)

        for attempt in range(MAX_NUMBER_ATTEMPTS):
            request_number = await self.next_request_number()
            try:
                created = await self.db.servicerequest.create(
                    data={**data, "requestNumber": request_number}  # type: ignore[typeddict-item]
                )
                break
            except UniqueViolationError:
                logger.warning(
                    f"Request number {request_number} taken, retrying "
                    f"(attempt {attempt + 1}/{MAX_NUMBER_ATTEMPTS})"
                )
        else:
            logger.error("Could not allocate a unique service request number")
            raise ConflictError("Could not allocate a request number, please retry")

        logger.info(
            f"Service request {created.requestNumber} submitted for village {village.code}"
        )
        return ServiceRequestCreated(
            request_id=created.id,
            request_number=created.requestNumber,
            submitted_at=created.submittedAt,
            status=created.status,
        )

    async def list_requests(
        self,
        status_filter: Optional[ServiceRequestStatus],
        limit: int,
        offset: int,
    ) -> ServiceRequestListResponse:
        where: dict[str, Any] = {"status": status_filter} if status_filter else {}
        requests = await self.db.servicerequest.find_many(
            where=where,  # type: ignore[arg-type]
            include={"assignedGroup": True},
            order={"submittedAt": "desc"},
            take=limit,
            skip=offset,
        )
        total = await self.db.servicerequest.count(where=where)  # type: ignore[arg-type]
        return ServiceRequestListResponse(
            service_requests=[ServiceRequestResponse.from_prisma(r) for r in requests],
            pagination=Pagination.build(total, limit, offset),
        )

    async def get_by_number(self, request_number: str) -> ServiceRequestConfirmation:
        request = await self.db.servicerequest.find_unique(
            where={"requestNumber": request_number.strip().upper()}
        )
        if not request:
            raise ResourceNotFoundError("Service request")
        return ServiceRequestConfirmation.from_prisma(request)

    async def update_request(
        self, request_id: str, payload: ServiceRequestUpdate, actor: User
    ) -> ServiceRequestResponse:
        existing = await self._get_or_404(request_id)
        data: dict[str, Any] = {}
        if payload.assigned_group_id is not None:
            group = await self.db.reliefgroup.find_unique(
                where={"id": payload.assigned_group_id}
            )
            if not group:
                raise InvalidDataError("Assigned relief group not found")
            if group.status != GroupStatus.verified:
                raise InvalidDataError("Only verified relief groups can be assigned")
            data["assignedGroupId"] = group.id
        if payload.status is not None:
            data["status"] = payload.status
        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        updated = await self.db.servicerequest.update(
            where={"id": request_id},
            data=data,  # type: ignore[arg-type]
            include={"assignedGroup": True},
        )
        await log_event(
            self.db,
            action="service_request_updated",
            target_type="service_request",
            actor_user_id=actor.id,
            target_id=request_id,
            metadata={
                "request_number": existing.requestNumber,
                "previous_status": existing.status.value,
                **payload.model_dump(mode="json", exclude_none=True),
            },
        )
        return ServiceRequestResponse.from_prisma(updated or existing)

    async def _get_or_404(self, request_id: str) -> ServiceRequest:
        request = await self.db.servicerequest.find_unique(
            where={"id": request_id}, include={"assignedGroup": True}
        )
        if not request:
            raise ResourceNotFoundError("Service request")
        return request
