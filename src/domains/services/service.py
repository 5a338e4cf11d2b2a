import logging
from typing import Any, List, Optional

from prisma.errors import UniqueViolationError
from prisma.models import Service, User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.services.models import (
    ServiceCreate,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdate,
)
from src.shared.exceptions import ConflictError, InvalidDataError, ResourceNotFoundError
from src.shared.models import Pagination

logger = logging.getLogger(__name__)

SERVICE_TARGET = "service"
DUPLICATE_MESSAGE = "Service with this category and subcategory already exists"
CATALOG_ORDER: List[Any] = [{"broadCategory": "asc"}, {"subcategory": "asc"}]


class CatalogService:
    """Broad category / subcategory catalog offered on the request form."""

    def __init__(self, db: Prisma):
        self.db = db

    async def list_services(
        self, broad_category: Optional[str], limit: int, offset: int
    ) -> ServiceListResponse:
        where: dict[str, Any] = (
            {"broadCategory": broad_category} if broad_category else {}
        )
        services = await self.db.service.find_many(
            where=where,  # type: ignore[arg-type]
            order=CATALOG_ORDER,
            take=limit,
            skip=offset,
        )
        total = await self.db.service.count(where=where)  # type: ignore[arg-type]
        return ServiceListResponse(
            services=[ServiceResponse.from_prisma(s) for s in services],
            pagination=Pagination.build(total, limit, offset),
        )

    async def list_public(self) -> List[ServiceResponse]:
        services = await self.db.service.find_many(order=CATALOG_ORDER)
        return [ServiceResponse.from_prisma(s) for s in services]

    async def get_service(self, service_id: str) -> ServiceResponse:
        return ServiceResponse.from_prisma(await self._get_or_404(service_id))

    async def create_service(self, request: ServiceCreate, actor: User) -> ServiceResponse:
        await self._ensure_unique(request.broad_category, request.subcategory)
        try:
            service = await self.db.service.create(
                data={
                    "broadCategory": request.broad_category,
                    "subcategory": request.subcategory,
                }
            )
        except UniqueViolationError:
            raise ConflictError(DUPLICATE_MESSAGE)

        await log_event(
            self.db,
            action="service_created",
            target_type=SERVICE_TARGET,
            actor_user_id=actor.id,
            target_id=service.id,
            metadata=request.model_dump(),
        )
        logger.info(
            f"Service {service.broadCategory}/{service.subcategory} created by {actor.id}"
        )
        return ServiceResponse.from_prisma(service)

    async def update_service(
        self, service_id: str, request: ServiceUpdate, actor: User
    ) -> ServiceResponse:
        existing = await self._get_or_404(service_id)
        if request.broad_category is None and request.subcategory is None:
            raise InvalidDataError("At least one field must be provided for update")

        broad_category = request.broad_category or existing.broadCategory
        subcategory = request.subcategory or existing.subcategory
        await self._ensure_unique(broad_category, subcategory, exclude_id=service_id)

        try:
            updated = await self.db.service.update(
                where={"id": service_id},
                data={"broadCategory": broad_category, "subcategory": subcategory},
            )
        except UniqueViolationError:
            raise ConflictError(DUPLICATE_MESSAGE)

        await log_event(
            self.db,
            action="service_updated",
            target_type=SERVICE_TARGET,
            actor_user_id=actor.id,
            target_id=service_id,
            metadata={
                "previous": {
                    "broad_category": existing.broadCategory,
                    "subcategory": existing.subcategory,
                },
                "changes": request.model_dump(exclude_none=True),
            },
        )
        return ServiceResponse.from_prisma(updated or existing)

    async def delete_service(self, service_id: str, actor: User) -> None:
        await self._get_or_404(service_id)
        await self.db.service.delete(where={"id": service_id})
        await log_event(
            self.db,
            action="service_deleted",
            target_type=SERVICE_TARGET,
            actor_user_id=actor.id,
            target_id=service_id,
        )

    async def _ensure_unique(
        self, broad_category: str, subcategory: str, exclude_id: Optional[str] = None
    ) -> None:
        where: dict[str, Any] = {
            "broadCategory": broad_category,
            "subcategory": subcategory,
        }
        if exclude_id:
            where["NOT"] = {"id": exclude_id}
        if await self.db.service.find_first(where=where):  # type: ignore[arg-type]
            raise ConflictError(DUPLICATE_MESSAGE)

    async def _get_or_404(self, service_id: str) -> Service:
        service = await self.db.service.find_unique(where={"id": service_id})
        if not service:
            raise ResourceNotFoundError("Service")
        return service
