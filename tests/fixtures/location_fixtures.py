"""
Test fixtures and factories for the state/district/tehsil/village hierarchy.
"""

from datetime import datetime, timezone
from typing import Optional
from unittest.mock import Mock

import pytest
from prisma.models import District, State, Tehsil, Village

CREATED_AT = datetime(2025, 9, 1, 9, 0, 0, tzinfo=timezone.utc)


def make_state(code: str = "PB", name: str = "Punjab") -> Mock:
    state = Mock(spec=State)
    state.code = code
    state.name = name
    state.districts = []
    state.createdAt = CREATED_AT
    state.updatedAt = CREATED_AT
    return state


def make_district(
    code: str = "PB-AMR", name: str = "Amritsar", state_code: str = "PB"
) -> Mock:
    district = Mock(spec=District)
    district.code = code
    district.name = name
    district.stateCode = state_code
    district.tehsils = []
    district.createdAt = CREATED_AT
    district.updatedAt = CREATED_AT
    return district


def make_tehsil(
    code: str = "PB-AMR-AJN",
    name: str = "Ajnala",
    district_code: str = "PB-AMR",
) -> Mock:
    tehsil = Mock(spec=Tehsil)
    tehsil.code = code
    tehsil.name = name
    tehsil.districtCode = district_code
    tehsil.villages = []
    tehsil.district = None
    tehsil.createdAt = CREATED_AT
    tehsil.updatedAt = CREATED_AT
    return tehsil


def make_village(
    code: str = "PB-AMR-AJN-001",
    name: str = "Ghonewal",
    tehsil_code: str = "PB-AMR-AJN",
    district_code: str = "PB-AMR",
    lat: Optional[float] = 31.85,
    lon: Optional[float] = 74.76,
) -> Mock:
    """Build a mock Village with its tehsil and district relations loaded."""
    village = Mock(spec=Village)
    village.code = code
    village.name = name
    village.tehsilCode = tehsil_code
    village.districtCode = district_code
    village.lat = lat
    village.lon = lon
    village.tehsil = make_tehsil(code=tehsil_code, district_code=district_code)
    village.district = make_district(code=district_code)
    village.createdAt = CREATED_AT
    village.updatedAt = CREATED_AT
    return village


@pytest.fixture
def mock_state() -> Mock:
    return make_state()


@pytest.fixture
def mock_district() -> Mock:
    return make_district()


@pytest.fixture
def mock_tehsil() -> Mock:
    """Ajnala tehsil with its Amritsar district loaded."""
    tehsil = make_tehsil()
    tehsil.district = make_district()
    return tehsil


@pytest.fixture
def mock_village() -> Mock:
    return make_village()
