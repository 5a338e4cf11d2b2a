"""
Tests for the location hierarchy in src/domains/locations/service.py
"""

from unittest.mock import Mock

import pytest
from prisma.errors import UniqueViolationError

from src.domains.locations.models import (
    DistrictUpdate,
    StateCreate,
    TehsilUpdate,
    VillageCreate,
    VillageUpdate,
)
from src.domains.locations.service import LocationService, haversine_km
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    ResourceNotFoundError,
)
from tests.fixtures.location_fixtures import (
    make_district,
    make_state,
    make_tehsil,
    make_village,
)


def unique_violation() -> UniqueViolationError:
    return UniqueViolationError(
        {"user_facing_error": {"message": "Unique constraint failed on code"}}
    )


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(31.63, 74.87, 31.63, 74.87) == 0

    def test_amritsar_to_ludhiana(self):
        distance = haversine_km(31.634, 74.872, 30.901, 75.857)
        assert 115 < distance < 125


class TestPublicReads:
    @pytest.mark.asyncio
    async def test_hierarchy_nests_all_levels(self, mock_prisma: Mock):
        # Arrange
        tehsil = make_tehsil()
        tehsil.villages = [make_village()]
        district = make_district()
        district.tehsils = [tehsil]
        state = make_state()
        state.districts = [district]
        mock_prisma.state.find_many.return_value = [state]

        # Act
        service = LocationService(mock_prisma)
        result = await service.get_hierarchy()

        # Assert
        assert result.states[0].code == "PB"
        assert result.states[0].districts[0].code == "PB-AMR"
        assert result.states[0].districts[0].tehsils[0].name == "Ajnala"
        village = result.states[0].districts[0].tehsils[0].villages[0]
        assert village.code == "PB-AMR-AJN-001"
        assert village.district_code == "PB-AMR"

    @pytest.mark.asyncio
    async def test_list_districts_filters_by_state(self, mock_prisma: Mock):
        mock_prisma.district.find_many.return_value = [make_district()]

        service = LocationService(mock_prisma)
        result = await service.list_districts("PB")

        assert [d.code for d in result] == ["PB-AMR"]
        kwargs = mock_prisma.district.find_many.call_args[1]
        assert kwargs["where"] == {"stateCode": "PB"}
        assert kwargs["order"] == {"name": "asc"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", " ", "g", " g "])
    async def test_short_search_returns_nothing(self, mock_prisma: Mock, query: str):
        service = LocationService(mock_prisma)

        assert await service.search_villages(query) == []
        mock_prisma.village.find_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_and_capped(self, mock_prisma: Mock):
        mock_prisma.village.find_many.return_value = [make_village()]

        service = LocationService(mock_prisma)
        result = await service.search_villages(" ghone ")

        assert result[0].name == "Ghonewal"
        assert result[0].tehsil_name == "Ajnala"
        kwargs = mock_prisma.village.find_many.call_args[1]
        assert kwargs["where"] == {"name": {"contains": "ghone", "mode": "insensitive"}}
        assert kwargs["take"] == 50

    @pytest.mark.asyncio
    async def test_nearest_villages_sorted_by_distance(self, mock_prisma: Mock):
        near = make_village(code="V-NEAR", lat=31.70, lon=74.80)
        far = make_village(code="V-FAR", lat=30.90, lon=75.85)
        unplaced = make_village(code="V-NONE", lat=None, lon=None)
        mock_prisma.village.find_many.return_value = [far, unplaced, near]

        service = LocationService(mock_prisma)
        result = await service.nearest_villages("31.71", "74.81", limit=5)

        assert [v.code for v in result] == ["V-NEAR", "V-FAR"]
        assert result[0].distance_km < result[1].distance_km

    @pytest.mark.asyncio
    async def test_get_missing_village(self, mock_prisma: Mock):
        mock_prisma.village.find_unique.return_value = None

        service = LocationService(mock_prisma)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.get_village("nope")

        assert exc_info.value.detail == "Village not found"


class TestAdminWrites:
    @pytest.mark.asyncio
    async def test_create_state(self, mock_prisma: Mock, mock_admin_user: Mock):
        mock_prisma.state.find_unique.return_value = None
        mock_prisma.state.create.return_value = make_state(code="HP", name="Himachal")

        service = LocationService(mock_prisma)
        result = await service.create_state(
            StateCreate(code="HP", name=" Himachal "), mock_admin_user
        )

        assert result.code == "HP"
        data = mock_prisma.state.create.call_args[1]["data"]
        assert data == {"code": "HP", "name": "Himachal"}
        audit = mock_prisma.auditlog.create.call_args[1]["data"]
        assert audit["action"] == "state_created"
        assert audit["targetType"] == "location"

    @pytest.mark.asyncio
    async def test_create_duplicate_state(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.state.find_unique.return_value = make_state()

        service = LocationService(mock_prisma)
        with pytest.raises(ConflictError):
            await service.create_state(
                StateCreate(code="PB", name="Punjab"), mock_admin_user
            )

    @pytest.mark.asyncio
    async def test_create_state_race_maps_to_conflict(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.state.find_unique.return_value = None
        mock_prisma.state.create.side_effect = unique_violation()

        service = LocationService(mock_prisma)
        with pytest.raises(ConflictError) as exc_info:
            await service.create_state(
                StateCreate(code="HP", name="Himachal"), mock_admin_user
            )

        assert exc_info.value.detail == "State code already exists"
        mock_prisma.auditlog.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_state_with_districts(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.state.find_unique.return_value = make_state()
        mock_prisma.district.count.return_value = 3

        service = LocationService(mock_prisma)
        with pytest.raises(ConflictError) as exc_info:
            await service.delete_state("PB", mock_admin_user)

        assert "existing districts" in exc_info.value.detail
        mock_prisma.state.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_district_requires_a_field(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.district.find_unique.return_value = make_district()

        service = LocationService(mock_prisma)
        with pytest.raises(InvalidDataError):
            await service.update_district("PB-AMR", DistrictUpdate(), mock_admin_user)

    @pytest.mark.asyncio
    async def test_moving_tehsil_moves_its_villages(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        # Arrange
        mock_prisma.tehsil.find_unique.return_value = make_tehsil()
        mock_prisma.district.find_unique.return_value = make_district(code="PB-TT")
        mock_prisma.tehsil.update.return_value = make_tehsil(district_code="PB-TT")

        # Act
        service = LocationService(mock_prisma)
        result = await service.update_tehsil(
            "PB-AMR-AJN", TehsilUpdate(district_code="PB-TT"), mock_admin_user
        )

        # Assert
        assert result.district_code == "PB-TT"
        village_update = mock_prisma.village.update_many.call_args[1]
        assert village_update["where"] == {"tehsilCode": "PB-AMR-AJN"}
        assert village_update["data"] == {"districtCode": "PB-TT"}

    @pytest.mark.asyncio
    async def test_create_village_takes_district_from_tehsil(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.tehsil.find_unique.return_value = make_tehsil()
        mock_prisma.village.find_unique.return_value = None
        mock_prisma.village.create.return_value = make_village(code="PB-AMR-AJN-002")

        service = LocationService(mock_prisma)
        await service.create_village(
            VillageCreate(
                code="PB-AMR-AJN-002", name="Sahowal", tehsil_code="PB-AMR-AJN"
            ),
            mock_admin_user,
        )

        data = mock_prisma.village.create.call_args[1]["data"]
        assert data["districtCode"] == "PB-AMR"
        assert data["tehsilCode"] == "PB-AMR-AJN"

    @pytest.mark.asyncio
    async def test_create_village_race_maps_to_conflict(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.tehsil.find_unique.return_value = make_tehsil()
        mock_prisma.village.find_unique.return_value = None
        mock_prisma.village.create.side_effect = unique_violation()

        service = LocationService(mock_prisma)
        with pytest.raises(ConflictError) as exc_info:
            await service.create_village(
                VillageCreate(
                    code="PB-AMR-AJN-002", name="Sahowal", tehsil_code="PB-AMR-AJN"
                ),
                mock_admin_user,
            )

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_create_village_unknown_tehsil(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.tehsil.find_unique.return_value = None

        service = LocationService(mock_prisma)
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.create_village(
                VillageCreate(code="X-1", name="Nowhere", tehsil_code="X"),
                mock_admin_user,
            )

        assert exc_info.value.detail == "Tehsil not found"

    @pytest.mark.asyncio
    async def test_update_village_coordinates(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.village.find_unique.return_value = make_village()
        mock_prisma.village.update.return_value = make_village(lat=31.9, lon=74.7)

        service = LocationService(mock_prisma)
        await service.update_village(
            "PB-AMR-AJN-001", VillageUpdate(lat=31.9, lon=74.7), mock_admin_user
        )

        data = mock_prisma.village.update.call_args[1]["data"]
        assert data == {"lat": 31.9, "lon": 74.7}

    @pytest.mark.asyncio
    async def test_delete_referenced_village(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.village.find_unique.return_value = make_village()
        mock_prisma.servicerequest.count.return_value = 2

        service = LocationService(mock_prisma)
        with pytest.raises(ConflictError):
            await service.delete_village("PB-AMR-AJN-001", mock_admin_user)

        mock_prisma.village.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_unreferenced_village(
        self, mock_prisma: Mock, mock_admin_user: Mock
    ):
        mock_prisma.village.find_unique.return_value = make_village()

        service = LocationService(mock_prisma)
        await service.delete_village("PB-AMR-AJN-001", mock_admin_user)

        mock_prisma.village.delete.assert_called_once_with(
            where={"code": "PB-AMR-AJN-001"}
        )
