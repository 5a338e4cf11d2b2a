"""
Tests for the service catalog in src/domains/services/service.py
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from prisma.errors import UniqueViolationError
from prisma.models import Service

from src.domains.services.models import ServiceCreate, ServiceUpdate
from src.domains.services.service import DUPLICATE_MESSAGE, CatalogService
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    ResourceNotFoundError,
)


def make_service(
    service_id: str = "service-id-1",
    broad_category: str = "Rescue",
    subcategory: str = "Boat evacuation",
) -> Mock:
    service = Mock(spec=Service)
    service.id = service_id
    service.broadCategory = broad_category
    service.subcategory = subcategory
    service.createdAt = datetime(2025, 9, 1, tzinfo=timezone.utc)
    service.updatedAt = datetime(2025, 9, 1, tzinfo=timezone.utc)
    return service


class TestCatalogService:
    @pytest.mark.asyncio
    async def test_list_services_paginated(self, mock_prisma: Mock):
        # Arrange
        mock_prisma.service.find_many.return_value = [make_service()]
        mock_prisma.service.count.return_value = 1

        # Act
        service = CatalogService(mock_prisma)
        result = await service.list_services("Rescue", limit=20, offset=0)

        # Assert
        assert result.services[0].broad_category == "Rescue"
        assert result.pagination.total == 1
        kwargs = mock_prisma.service.find_many.call_args[1]
        assert kwargs["where"] == {"broadCategory": "Rescue"}
        assert kwargs["order"] == [{"broadCategory": "asc"}, {"subcategory": "asc"}]

    @pytest.mark.asyncio
    async def test_create_service(self, mock_prisma: Mock, mock_admin_user: Mock):
        mock_prisma.service.find_first.return_value = None
        mock_prisma.service.create.return_value = make_service()

        service = CatalogService(mock_prisma)
        result = await service.create_service(
            ServiceCreate(broad_category=" Rescue ", subcategory="Boat evacuation"),
            mock_admin_user,
        )

        assert result.id == "service-id-1"
        data = mock_prisma.service.create.call_args[1]["data"]
        assert data == {"broadCategory": "Rescue", "subcategory": "Boat evacuation"}

    @pytest.mark.asyncio
    async def test_create_duplicate_detected_up_front(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.service.find_first.return_value = make_service()

        service = CatalogService(mock_prisma)
        with pytest.raises(ConflictError) as exc_info:
            await service.create_service(
                ServiceCreate(broad_category="Rescue", subcategory="Boat evacuation"),
                mock_admin_user,
            )

        assert exc_info.value.detail == DUPLICATE_MESSAGE
        mock_prisma.service.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_duplicate_race_maps_to_conflict(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        """A concurrent insert that wins the race still surfaces as 409."""
        mock_prisma.service.find_first.return_value = None
        mock_prisma.service.create.side_effect = UniqueViolationError(
            {"user_facing_error": {"message": "Unique constraint failed"}}
        )

        service = CatalogService(mock_prisma)
        with pytest.raises(ConflictError):
            await service.create_service(
                ServiceCreate(broad_category="Rescue", subcategory="Boat evacuation"),
                mock_admin_user,
            )

    def test_blank_values_rejected(self):
        with pytest.raises(ValueError):
            ServiceCreate(broad_category="   ", subcategory="Boat evacuation")

    @pytest.mark.asyncio
    async def test_update_keeps_unchanged_field(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        existing = make_service()
        mock_prisma.service.find_unique.return_value = existing
        mock_prisma.service.find_first.return_value = None
        mock_prisma.service.update.return_value = make_service(subcategory="Airlift")

        service = CatalogService(mock_prisma)
        result = await service.update_service(
            "service-id-1", ServiceUpdate(subcategory="Airlift"), mock_admin_user
        )

        assert result.subcategory == "Airlift"
        data = mock_prisma.service.update.call_args[1]["data"]
        assert data == {"broadCategory": "Rescue", "subcategory": "Airlift"}
        unique_where = mock_prisma.service.find_first.call_args[1]["where"]
        assert unique_where["NOT"] == {"id": "service-id-1"}

    @pytest.mark.asyncio
    async def test_update_without_fields(self, mock_prisma: Mock, mock_admin_user: Mock):
        mock_prisma.service.find_unique.return_value = make_service()

        service = CatalogService(mock_prisma)
        with pytest.raises(InvalidDataError):
            await service.update_service("service-id-1", ServiceUpdate(), mock_admin_user)

    @pytest.mark.asyncio
    async def test_delete_missing(self, mock_prisma: Mock, mock_admin_user: Mock):
        mock_prisma.service.find_unique.return_value = None

        service = CatalogService(mock_prisma)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.delete_service("missing", mock_admin_user)

        assert exc_info.value.detail == "Service not found"
