import logging
from typing import Any, List, Optional

from prisma.enums import LocationType
from prisma.errors import UniqueViolationError
from prisma.models import AlertCategory, AlertStatus, User

from prisma import Prisma
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
    GroupedAlerts,
    LocationAlertUpdate,
)
from src.domains.audit.service import log_event
from src.shared.exceptions import ConflictError, InvalidDataError, ResourceNotFoundError

logger = logging.getLogger(__name__)

ALERT_TARGET = "alert"
CATEGORY_TARGET = "alert_category"
LOCATION_CODE_FIELDS = {
    LocationType.state: "stateCode",
    LocationType.district: "districtCode",
    LocationType.tehsil: "tehsilCode",
    LocationType.village: "villageCode",
}
BULK_LOCATION_TYPES = (LocationType.district, LocationType.tehsil)
ALERT_INCLUDE = {
    "category": True,
    "status": True,
    "createdBy": True,
    "updatedBy": True,
    "state": True,
    "district": True,
    "tehsil": True,
    "village": True,
}
ACTIVE_STATUSES_INCLUDE = {
    "statuses": {"where": {"isActive": True}, "order_by": {"orderIndex": "asc"}}
}


class AlertService:
    """Alert categories, their statuses, and alerts pinned to locations."""

    def __init__(self, db: Prisma):
        self.db = db

    # Categories

    async def list_categories(self) -> List[AlertCategoryResponse]:
        categories = await self.db.alertcategory.find_many(
            where={"isActive": True},
            include=ACTIVE_STATUSES_INCLUDE,  # type: ignore[arg-type]
            order={"orderIndex": "asc"},
        )
        return [AlertCategoryResponse.from_prisma(c) for c in categories]

    async def get_category(self, category_id: str) -> AlertCategoryResponse:
        category = await self.db.alertcategory.find_unique(
            where={"id": category_id},
            include=ACTIVE_STATUSES_INCLUDE,  # type: ignore[arg-type]
        )
        if not category:
            raise ResourceNotFoundError("Alert category")
        return AlertCategoryResponse.from_prisma(category)

    async def create_category(
        self, request: AlertCategoryCreate, actor: User
    ) -> AlertCategoryResponse:
        if await self.db.alertcategory.find_unique(where={"name": request.name}):
            raise ConflictError("Category with this name already exists")

        category = await self.db.alertcategory.create(
            data={
                "name": request.name,
                "description": request.description,
                "orderIndex": request.order_index,
            }
        )
        await log_event(
            self.db,
            action="alert_category_created",
            target_type=CATEGORY_TARGET,
            actor_user_id=actor.id,
            target_id=category.id,
            metadata={"name": category.name},
        )
        return AlertCategoryResponse.from_prisma(category)

    async def update_category(
        self, category_id: str, request: AlertCategoryUpdate, actor: User
    ) -> AlertCategoryResponse:
        category = await self._get_category_or_404(category_id)
        if request.name and request.name != category.name:
            if await self.db.alertcategory.find_unique(where={"name": request.name}):
                raise ConflictError("Category with this name already exists")

        data: dict[str, Any] = {}
        if request.name is not None:
            data["name"] = request.name
        if request.description is not None:
            data["description"] = request.description
        if request.order_index is not None:
            data["orderIndex"] = request.order_index
        if request.is_active is not None:
            data["isActive"] = request.is_active

        if data:
            await self.db.alertcategory.update(where={"id": category_id}, data=data)  # type: ignore[arg-type]
            await log_event(
                self.db,
                action="alert_category_updated",
                target_type=CATEGORY_TARGET,
                actor_user_id=actor.id,
                target_id=category_id,
                metadata=request.model_dump(exclude_none=True),
            )
        return await self.get_category(category_id)

    async def delete_category(self, category_id: str, actor: User) -> None:
        """Soft delete: the category and all of its statuses become inactive."""
        category = await self._get_category_or_404(category_id)
        async with self.db.tx() as transaction:
            await transaction.alertcategory.update(
                where={"id": category_id}, data={"isActive": False}
            )
            await transaction.alertstatus.update_many(
                where={"categoryId": category_id}, data={"isActive": False}
            )
        await log_event(
            self.db,
            action="alert_category_deleted",
            target_type=CATEGORY_TARGET,
            actor_user_id=actor.id,
            target_id=category_id,
            metadata={"name": category.name},
        )

    # Statuses

    async def list_statuses(self, category_id: str) -> List[AlertStatusResponse]:
        await self._get_category_or_404(category_id)
        statuses = await self.db.alertstatus.find_many(
            where={"categoryId": category_id, "isActive": True},
            order={"orderIndex": "asc"},
        )
        return [AlertStatusResponse.from_prisma(s) for s in statuses]

    async def get_status(self, category_id: str, status_id: str) -> AlertStatusResponse:
        status = await self._get_status_in_category(category_id, status_id)
        return AlertStatusResponse.from_prisma(status)

    async def create_status(
        self, category_id: str, request: AlertStatusCreate, actor: User
    ) -> AlertStatusResponse:
        await self._get_category_or_404(category_id)
        await self._ensure_status_unique(category_id, request.name, request.value)

        try:
            status = await self.db.alertstatus.create(
                data={
                    "categoryId": category_id,
                    "name": request.name,
                    "value": request.value,
                    "color": request.color,
                    "description": request.description,
                    "orderIndex": request.order_index,
                }
            )
        except UniqueViolationError:
            raise ConflictError("Status with this name or value already exists")

        await log_event(
            self.db,
            action="alert_status_created",
            target_type=CATEGORY_TARGET,
            actor_user_id=actor.id,
            target_id=category_id,
            metadata={"status_id": status.id, "name": status.name},
        )
        return AlertStatusResponse.from_prisma(status)

    async def update_status(
        self,
        category_id: str,
        status_id: str,
        request: AlertStatusUpdate,
        actor: User,
    ) -> AlertStatusResponse:
        status = await self._get_status_in_category(category_id, status_id)
        await self._ensure_status_unique(
            category_id,
            request.name if request.name != status.name else None,
            request.value if request.value != status.value else None,
            exclude_id=status_id,
        )

        data: dict[str, Any] = {}
        for field, column in (
            ("name", "name"),
            ("value", "value"),
            ("color", "color"),
            ("description", "description"),
            ("order_index", "orderIndex"),
            ("is_active", "isActive"),
        ):
            value = getattr(request, field)
            if value is not None:
                data[column] = value
        if not data:
            return AlertStatusResponse.from_prisma(status)

        updated = await self.db.alertstatus.update(where={"id": status_id}, data=data)  # type: ignore[arg-type]
        await log_event(
            self.db,
            action="alert_status_updated",
            target_type=CATEGORY_TARGET,
            actor_user_id=actor.id,
            target_id=category_id,
            metadata={"status_id": status_id, **request.model_dump(exclude_none=True)},
        )
        return AlertStatusResponse.from_prisma(updated or status)

    async def delete_status(self, category_id: str, status_id: str, actor: User) -> None:
        await self._get_status_in_category(category_id, status_id)
        await self.db.alertstatus.update(
            where={"id": status_id}, data={"isActive": False}
        )
        await log_event(
            self.db,
            action="alert_status_deleted",
            target_type=CATEGORY_TARGET,
            actor_user_id=actor.id,
            target_id=category_id,
            metadata={"status_id": status_id},
        )

    # Location alerts

    async def list_alerts(
        self,
        state_code: Optional[str] = None,
        district_code: Optional[str] = None,
        tehsil_code: Optional[str] = None,
        category_id: Optional[str] = None,
        is_active: bool = True,
    ) -> AlertListResponse:
        where: dict[str, Any] = {"isActive": is_active}
        if state_code:
            where["stateCode"] = state_code
        if district_code:
            where["districtCode"] = district_code
        if tehsil_code:
            where["tehsilCode"] = tehsil_code
        if category_id:
            where["categoryId"] = category_id

        alerts = await self.db.alert.find_many(
            where=where,  # type: ignore[arg-type]
            include=ALERT_INCLUDE,  # type: ignore[arg-type]
            order=[{"locationType": "asc"}, {"createdAt": "desc"}],
        )
        grouped = GroupedAlerts()
        buckets = {
            LocationType.state: grouped.states,
            LocationType.district: grouped.districts,
            LocationType.tehsil: grouped.tehsils,
            LocationType.village: grouped.villages,
        }
        for alert in alerts:
            buckets[alert.locationType].append(AlertResponse.from_prisma(alert))
        return AlertListResponse(alerts=grouped, total=len(alerts))

    async def list_location_alerts(
        self,
        location_type: Optional[LocationType],
        location_code: str,
        category_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[AlertResponse]:
        if location_type is None:
            raise InvalidDataError(
                "Valid location type is required (state, district, tehsil, village)"
            )
        where = self._location_where(location_type, location_code)
        if category_id:
            where["categoryId"] = category_id
        if not include_inactive:
            where["isActive"] = True

        alerts = await self.db.alert.find_many(
            where=where,  # type: ignore[arg-type]
            include=ALERT_INCLUDE,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
        )
        return [AlertResponse.from_prisma(a) for a in alerts]

    async def create_alert(self, request: AlertCreate, actor: User) -> AlertResponse:
        """
        Pin an alert to a single location.

        Raises:
            InvalidDataError: Location code missing for the type, or the status
                belongs to another category
            ResourceNotFoundError: Location, category or status does not exist
            ConflictError: An active alert already exists for the location and
                category
        """
        location_code = request.location_code()
        if not location_code:
            raise InvalidDataError(
                f"{request.location_type.value.capitalize()} code is required "
                f"for {request.location_type.value}-level alerts"
            )
        await self._require_location(request.location_type, location_code)
        await self._require_category_and_status(request.category_id, request.status_id)

        where = self._location_where(request.location_type, location_code)
        where.update({"categoryId": request.category_id, "isActive": True})
        if await self.db.alert.find_first(where=where):  # type: ignore[arg-type]
            raise ConflictError(
                "An active alert already exists for this location and category"
            )

        alert = await self.db.alert.create(
            data={
                "categoryId": request.category_id,
                "statusId": request.status_id,
                "locationType": request.location_type,
                "stateCode": request.state_code,
                "districtCode": request.district_code,
                "tehsilCode": request.tehsil_code,
                "villageCode": request.village_code,
                "notes": request.notes,
                "severity": request.severity,
                "isActive": request.is_active,
                "createdById": actor.id,
                "updatedById": actor.id,
            },
            include=ALERT_INCLUDE,  # type: ignore[arg-type]
        )
        await log_event(
            self.db,
            action="alert_created",
            target_type=ALERT_TARGET,
            actor_user_id=actor.id,
            target_id=alert.id,
            metadata={
                "location_type": request.location_type.value,
                "location_code": location_code,
                "category_id": request.category_id,
                "status_id": request.status_id,
            },
        )
        return AlertResponse.from_prisma(alert)

    async def bulk_upsert(self, request: BulkAlertUpdate, actor: User) -> BulkAlertResult:
        """Set one category's status across many districts or tehsils at once."""
        if request.location_type not in BULK_LOCATION_TYPES:
            raise InvalidDataError(
                "Bulk updates are only supported for districts and tehsils"
            )
        await self._require_category_and_status(request.category_id, request.status_id)
        for code in request.location_codes:
            if not await self._location_exists(request.location_type, code):
                raise ResourceNotFoundError("One or more locations")

        created = 0
        updated = 0
        results = []
        async with self.db.tx() as transaction:
            for code in request.location_codes:
                where = self._location_where(request.location_type, code)
                where.update({"categoryId": request.category_id, "isActive": True})
                existing = await transaction.alert.find_first(where=where)  # type: ignore[arg-type]

                if existing:
                    alert = await transaction.alert.update(
                        where={"id": existing.id},
                        data={
                            "statusId": request.status_id,
                            "notes": request.notes or existing.notes,
                            "severity": request.severity or existing.severity,
                            "isActive": request.is_active,
                            "updatedById": actor.id,
                        },
                        include=ALERT_INCLUDE,  # type: ignore[arg-type]
                    )
                    updated += 1
                else:
                    alert = await transaction.alert.create(
                        data={
                            "categoryId": request.category_id,
                            "statusId": request.status_id,
                            "locationType": request.location_type,
                            LOCATION_CODE_FIELDS[request.location_type]: code,  # type: ignore[misc]
                            "notes": request.notes,
                            "severity": request.severity or "info",
                            "isActive": request.is_active,
                            "createdById": actor.id,
                            "updatedById": actor.id,
                        },
                        include=ALERT_INCLUDE,  # type: ignore[arg-type]
                    )
                    created += 1
                if alert:
                    results.append(AlertResponse.from_prisma(alert))

        await log_event(
            self.db,
            action="alerts_bulk_updated",
            target_type=ALERT_TARGET,
            actor_user_id=actor.id,
            metadata={
                "location_type": request.location_type.value,
                "location_codes": request.location_codes,
                "category_id": request.category_id,
                "status_id": request.status_id,
                "created": created,
                "updated": updated,
            },
        )
        logger.info(
            f"Bulk alert update by {actor.id}: {created} created, {updated} updated"
        )
        return BulkAlertResult(
            total=len(request.location_codes),
            created=created,
            updated=updated,
            alerts=results,
        )

    async def update_location_alert(
        self,
        location_type: Optional[LocationType],
        location_code: str,
        category_id: Optional[str],
        request: LocationAlertUpdate,
        actor: User,
    ) -> AlertResponse:
        existing = await self._find_location_alert(
            location_type, location_code, category_id
        )
        if request.status_id:
            status = await self.db.alertstatus.find_unique(
                where={"id": request.status_id}
            )
            if not status:
                raise ResourceNotFoundError("Alert status")
            if status.categoryId != category_id:
                raise InvalidDataError(
                    "Status does not belong to the specified category"
                )

        data: dict[str, Any] = {"updatedById": actor.id}
        if request.status_id is not None:
            data["statusId"] = request.status_id
        if request.notes is not None:
            data["notes"] = request.notes
        if request.severity is not None:
            data["severity"] = request.severity
        if request.is_active is not None:
            data["isActive"] = request.is_active

        alert = await self.db.alert.update(
            where={"id": existing.id},
            data=data,  # type: ignore[arg-type]
            include=ALERT_INCLUDE,  # type: ignore[arg-type]
        )
        await log_event(
            self.db,
            action="alert_updated",
            target_type=ALERT_TARGET,
            actor_user_id=actor.id,
            target_id=existing.id,
            metadata={
                "location_code": location_code,
                "old_status_id": existing.statusId,
                **request.model_dump(exclude_none=True),
            },
        )
        return AlertResponse.from_prisma(alert or existing)

    async def delete_location_alert(
        self,
        location_type: Optional[LocationType],
        location_code: str,
        category_id: Optional[str],
        actor: User,
    ) -> None:
        existing = await self._find_location_alert(
            location_type, location_code, category_id, active_only=True
        )
        await self.db.alert.update(
            where={"id": existing.id},
            data={"isActive": False, "updatedById": actor.id},
        )
        await log_event(
            self.db,
            action="alert_deleted",
            target_type=ALERT_TARGET,
            actor_user_id=actor.id,
            target_id=existing.id,
            metadata={"location_code": location_code, "category_id": category_id},
        )

    # Helpers

    @staticmethod
    def _location_where(location_type: LocationType, code: str) -> dict[str, Any]:
        return {"locationType": location_type, LOCATION_CODE_FIELDS[location_type]: code}

    async def _find_location_alert(
        self,
        location_type: Optional[LocationType],
        location_code: str,
        category_id: Optional[str],
        active_only: bool = False,
    ) -> Any:
        if location_type is None:
            raise InvalidDataError(
                "Valid location type is required (state, district, tehsil, village)"
            )
        if not category_id:
            raise InvalidDataError("Category ID is required")

        where = self._location_where(location_type, location_code)
        where["categoryId"] = category_id
        if active_only:
            where["isActive"] = True
        alert = await self.db.alert.find_first(
            where=where,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
            include=ALERT_INCLUDE,  # type: ignore[arg-type]
        )
        if not alert:
            raise ResourceNotFoundError("Alert for this location and category")
        return alert

    async def _location_exists(self, location_type: LocationType, code: str) -> bool:
        accessor = getattr(self.db, location_type.value)
        return await accessor.find_unique(where={"code": code}) is not None

    async def _require_location(self, location_type: LocationType, code: str) -> None:
        if not await self._location_exists(location_type, code):
            raise ResourceNotFoundError(location_type.value.capitalize())

    async def _require_category_and_status(
        self, category_id: str, status_id: str
    ) -> None:
        category = await self.db.alertcategory.find_unique(where={"id": category_id})
        if not category:
            raise ResourceNotFoundError("Alert category")
        status = await self.db.alertstatus.find_unique(where={"id": status_id})
        if not status:
            raise ResourceNotFoundError("Alert status")
        if status.categoryId != category_id:
            raise InvalidDataError("Status does not belong to the specified category")

    async def _ensure_status_unique(
        self,
        category_id: str,
        name: Optional[str],
        value: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> None:
        clauses = []
        if name:
            clauses.append({"name": name})
        if value:
            clauses.append({"value": value})
        if not clauses:
            return
        where: dict[str, Any] = {"categoryId": category_id, "OR": clauses}
        if exclude_id:
            where["NOT"] = {"id": exclude_id}
        if await self.db.alertstatus.find_first(where=where):  # type: ignore[arg-type]
            raise ConflictError("Status with this name or value already exists")

    async def _get_category_or_404(self, category_id: str) -> AlertCategory:
        category = await self.db.alertcategory.find_unique(where={"id": category_id})
        if not category:
            raise ResourceNotFoundError("Alert category")
        return category

    async def _get_status_in_category(
        self, category_id: str, status_id: str
    ) -> AlertStatus:
        status = await self.db.alertstatus.find_unique(where={"id": status_id})
        if not status or status.categoryId != category_id:
            raise ResourceNotFoundError("Alert status")
        return status
