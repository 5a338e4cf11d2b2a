"""
Test fixtures and factories for alert categories, statuses and location alerts.
"""

from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import Mock

import pytest
from prisma.enums import AlertSeverity, LocationType
from prisma.models import Alert, AlertCategory, AlertStatus

from tests.fixtures.location_fixtures import make_district, make_tehsil

CREATED_AT = datetime(2025, 9, 3, 8, 0, 0, tzinfo=timezone.utc)


def make_alert_status(
    status_id: str = "status-id-1",
    category_id: str = "category-id-1",
    name: str = "Flooded",
    value: str = "flooded",
    color: Optional[str] = "#d32f2f",
    is_active: bool = True,
) -> Mock:
    status = Mock(spec=AlertStatus)
    status.id = status_id
    status.categoryId = category_id
    status.name = name
    status.value = value
    status.color = color
    status.description = None
    status.orderIndex = 0
    status.isActive = is_active
    status.createdAt = CREATED_AT
    status.updatedAt = CREATED_AT
    return status


def make_alert_category(
    category_id: str = "category-id-1",
    name: str = "Flood Level",
    statuses: Optional[List[Mock]] = None,
    is_active: bool = True,
) -> Mock:
    category = Mock(spec=AlertCategory)
    category.id = category_id
    category.name = name
    category.description = "Water levels by area"
    category.orderIndex = 0
    category.isActive = is_active
    category.statuses = (
        statuses
        if statuses is not None
        else [make_alert_status(category_id=category_id)]
    )
    category.createdAt = CREATED_AT
    category.updatedAt = CREATED_AT
    return category


def make_alert(
    alert_id: str = "alert-id-1",
    location_type: LocationType = LocationType.district,
    code: str = "PB-AMR",
    category_id: str = "category-id-1",
    status_id: str = "status-id-1",
) -> Mock:
    """Build a mock Alert pinned to one location of the given type."""
    alert = Mock(spec=Alert)
    alert.id = alert_id
    alert.categoryId = category_id
    alert.statusId = status_id
    alert.locationType = location_type
    alert.stateCode = code if location_type == LocationType.state else None
    alert.districtCode = code if location_type == LocationType.district else None
    alert.tehsilCode = code if location_type == LocationType.tehsil else None
    alert.villageCode = code if location_type == LocationType.village else None
    alert.state = None
    alert.district = (
        make_district(code=code) if location_type == LocationType.district else None
    )
    alert.tehsil = (
        make_tehsil(code=code) if location_type == LocationType.tehsil else None
    )
    alert.village = None
    alert.notes = None
    alert.severity = AlertSeverity.warning
    alert.isActive = True
    alert.category = make_alert_category(category_id=category_id, statuses=[])
    alert.status = make_alert_status(status_id=status_id, category_id=category_id)
    alert.createdById = "admin-user-id-1"
    alert.updatedById = None
    alert.createdBy = None
    alert.updatedBy = None
    alert.createdAt = CREATED_AT
    alert.updatedAt = CREATED_AT
    return alert


@pytest.fixture
def mock_alert_status() -> Mock:
    return make_alert_status()


@pytest.fixture
def mock_alert_category() -> Mock:
    return make_alert_category()


@pytest.fixture
def mock_alert() -> Mock:
    return make_alert()
