import logging
import math
from typing import Any, List, Optional, Tuple

from prisma.errors import UniqueViolationError
from prisma.models import User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.locations.models import (
    DistrictCreate,
    DistrictDetail,
    DistrictNode,
    DistrictResponse,
    DistrictUpdate,
    LocationHierarchy,
    NearbyVillageResponse,
    StateCreate,
    StateDetail,
    StateNode,
    StateResponse,
    StateUpdate,
    TehsilCreate,
    TehsilDetail,
    TehsilNode,
    TehsilResponse,
    TehsilUpdate,
    VillageCreate,
    VillageResponse,
    VillageUpdate,
)
from src.shared.exceptions import ConflictError, InvalidDataError, ResourceNotFoundError

logger = logging.getLogger(__name__)

LOCATION_TARGET = "location"
SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 50
NEAREST_LIMIT = 10
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def require_code(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise InvalidDataError(f"{field} is required")
    return value.strip()


def parse_coordinates(lat: Optional[str], lon: Optional[str]) -> Tuple[float, float]:
    """Query-string coordinates as floats; missing or out-of-range values are a 400."""
    if lat is None or lon is None or not lat.strip() or not lon.strip():
        raise InvalidDataError("lat and lng are required")
    try:
        latitude, longitude = float(lat), float(lon)
    except ValueError:
        raise InvalidDataError("lat and lng must be numbers")
    if not math.isfinite(latitude) or not -90 <= latitude <= 90:
        raise InvalidDataError("lat must be between -90 and 90")
    if not math.isfinite(longitude) or not -180 <= longitude <= 180:
        raise InvalidDataError("lng must be between -180 and 180")
    return latitude, longitude


class LocationService:
    """State → district → tehsil → village reference data."""

    def __init__(self, db: Prisma):
        self.db = db

    # Public reads

    async def get_hierarchy(self) -> LocationHierarchy:
        states = await self.db.state.find_many(
            include={
                "districts": {
                    "order_by": {"name": "asc"},
                    "include": {
                        "tehsils": {
                            "order_by": {"name": "asc"},
                            "include": {"villages": {"order_by": {"name": "asc"}}},
                        }
                    },
                }
            },
            order={"name": "asc"},
        )
        return LocationHierarchy(
            states=[
                StateNode(
                    code=state.code,
                    name=state.name,
                    districts=[
                        DistrictNode(
                            **DistrictResponse.from_prisma(district).model_dump(),
                            tehsils=[
                                TehsilNode(
                                    **TehsilResponse.from_prisma(tehsil).model_dump(),
                                    villages=[
                                        VillageResponse.from_prisma(village)
                                        for village in (tehsil.villages or [])
                                    ],
                                )
                                for tehsil in (district.tehsils or [])
                            ],
                        )
                        for district in (state.districts or [])
                    ],
                )
                for state in states
            ]
        )

    async def list_states(self) -> List[StateResponse]:
        states = await self.db.state.find_many(order={"name": "asc"})
        return [StateResponse.from_prisma(state) for state in states]

    async def list_districts(self, state_code: Optional[str]) -> List[DistrictResponse]:
        state_code = require_code(state_code, "state_code")
        districts = await self.db.district.find_many(
            where={"stateCode": state_code}, order={"name": "asc"}
        )
        return [DistrictResponse.from_prisma(d) for d in districts]

    async def list_tehsils(self, district_code: Optional[str]) -> List[TehsilResponse]:
        district_code = require_code(district_code, "district_code")
        tehsils = await self.db.tehsil.find_many(
            where={"districtCode": district_code}, order={"name": "asc"}
        )
        return [TehsilResponse.from_prisma(t) for t in tehsils]

    async def list_villages(self, tehsil_code: Optional[str]) -> List[VillageResponse]:
        tehsil_code = require_code(tehsil_code, "tehsil_code")
        villages = await self.db.village.find_many(
            where={"tehsilCode": tehsil_code}, order={"name": "asc"}
        )
        return [VillageResponse.from_prisma(v) for v in villages]

    async def search_villages(self, query: str) -> List[VillageResponse]:
        """Case-insensitive name search; queries shorter than 2 chars match nothing."""
        query = query.strip()
        if len(query) < SEARCH_MIN_LENGTH:
            return []
        villages = await self.db.village.find_many(
            where={"name": {"contains": query, "mode": "insensitive"}},
            include={"tehsil": True, "district": True},
            order={"name": "asc"},
            take=SEARCH_LIMIT,
        )
        return [VillageResponse.from_prisma(v) for v in villages]

    async def nearest_villages(
        self, lat: Optional[str], lon: Optional[str], limit: int = NEAREST_LIMIT
    ) -> List[NearbyVillageResponse]:
        origin_lat, origin_lon = parse_coordinates(lat, lon)
        villages = await self.db.village.find_many(
            where={"lat": {"not": None}, "lon": {"not": None}},  # type: ignore[typeddict-item]
            include={"tehsil": True, "district": True},
        )
        ranked = sorted(
            (
                (haversine_km(origin_lat, origin_lon, village.lat, village.lon), village)
                for village in villages
                if village.lat is not None and village.lon is not None
            ),
            key=lambda pair: pair[0],
        )
        return [
            NearbyVillageResponse(
                **VillageResponse.from_prisma(village).model_dump(),
                distance_km=round(distance, 3),
            )
            for distance, village in ranked[:limit]
        ]

    # States

    async def get_state(self, code: str) -> StateDetail:
        state = await self.db.state.find_unique(
            where={"code": code},
            include={"districts": {"order_by": {"name": "asc"}}},
        )
        if not state:
            raise ResourceNotFoundError("State")
        return StateDetail(
            code=state.code,
            name=state.name,
            districts=[DistrictResponse.from_prisma(d) for d in state.districts or []],
        )

    async def create_state(self, request: StateCreate, actor: User) -> StateResponse:
        if await self.db.state.find_unique(where={"code": request.code}):
            raise ConflictError("State code already exists")
        try:
            state = await self.db.state.create(
                data={"code": request.code, "name": request.name.strip()}
            )
        except UniqueViolationError:
            raise ConflictError("State code already exists")
        await self._audit("state_created", actor, state.code, {"name": state.name})
        return StateResponse.from_prisma(state)

    async def update_state(
        self, code: str, request: StateUpdate, actor: User
    ) -> StateResponse:
        await self._require_state(code)
        state = await self.db.state.update(
            where={"code": code}, data={"name": request.name.strip()}
        )
        await self._audit("state_updated", actor, code, {"name": request.name})
        return StateResponse.from_prisma(state)  # type: ignore[arg-type]

    async def delete_state(self, code: str, actor: User) -> None:
        await self._require_state(code)
        if await self.db.district.count(where={"stateCode": code}):
            raise ConflictError("Cannot delete state with existing districts")
        await self.db.state.delete(where={"code": code})
        await self._audit("state_deleted", actor, code)

    # Districts

    async def get_district(self, code: str) -> DistrictDetail:
        district = await self.db.district.find_unique(
            where={"code": code},
            include={"tehsils": {"order_by": {"name": "asc"}}},
        )
        if not district:
            raise ResourceNotFoundError("District")
        return DistrictDetail(
            **DistrictResponse.from_prisma(district).model_dump(),
            tehsils=[TehsilResponse.from_prisma(t) for t in district.tehsils or []],
        )

    async def create_district(
        self, request: DistrictCreate, actor: User
    ) -> DistrictResponse:
        await self._require_state(request.state_code)
        if await self.db.district.find_unique(where={"code": request.code}):
            raise ConflictError("District code already exists")
        try:
            district = await self.db.district.create(
                data={
                    "code": request.code,
                    "name": request.name.strip(),
                    "stateCode": request.state_code,
                }
            )
        except UniqueViolationError:
            raise ConflictError("District code already exists")
        await self._audit(
            "district_created", actor, district.code, {"state_code": request.state_code}
        )
        return DistrictResponse.from_prisma(district)

    async def update_district(
        self, code: str, request: DistrictUpdate, actor: User
    ) -> DistrictResponse:
        await self._require_district(code)
        data: dict[str, Any] = {}
        if request.name is not None:
            data["name"] = request.name.strip()
        if request.state_code is not None:
            await self._require_state(request.state_code)
            data["stateCode"] = request.state_code
        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        district = await self.db.district.update(where={"code": code}, data=data)  # type: ignore[arg-type]
        await self._audit("district_updated", actor, code, request.model_dump(exclude_none=True))
        return DistrictResponse.from_prisma(district)  # type: ignore[arg-type]

    async def delete_district(self, code: str, actor: User) -> None:
        await self._require_district(code)
        if await self.db.tehsil.count(where={"districtCode": code}):
            raise ConflictError("Cannot delete district with existing tehsils")
        await self.db.district.delete(where={"code": code})
        await self._audit("district_deleted", actor, code)

    # Tehsils

    async def get_tehsil(self, code: str) -> TehsilDetail:
        tehsil = await self.db.tehsil.find_unique(
            where={"code": code},
            include={"villages": {"order_by": {"name": "asc"}}},
        )
        if not tehsil:
            raise ResourceNotFoundError("Tehsil")
        return TehsilDetail(
            **TehsilResponse.from_prisma(tehsil).model_dump(),
            villages=[VillageResponse.from_prisma(v) for v in tehsil.villages or []],
        )

    async def create_tehsil(self, request: TehsilCreate, actor: User) -> TehsilResponse:
        await self._require_district(request.district_code)
        if await self.db.tehsil.find_unique(where={"code": request.code}):
            raise ConflictError("Tehsil code already exists")
        try:
            tehsil = await self.db.tehsil.create(
                data={
                    "code": request.code,
                    "name": request.name.strip(),
                    "districtCode": request.district_code,
                }
            )
        except UniqueViolationError:
            raise ConflictError("Tehsil code already exists")
        await self._audit(
            "tehsil_created",
            actor,
            tehsil.code,
            {"district_code": request.district_code},
        )
        return TehsilResponse.from_prisma(tehsil)

    async def update_tehsil(
        self, code: str, request: TehsilUpdate, actor: User
    ) -> TehsilResponse:
        await self._require_tehsil(code)
        data: dict[str, Any] = {}
        if request.name is not None:
            data["name"] = request.name.strip()
        if request.district_code is not None:
            await self._require_district(request.district_code)
            data["districtCode"] = request.district_code
        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        async with self.db.tx() as transaction:
            tehsil = await transaction.tehsil.update(where={"code": code}, data=data)  # type: ignore[arg-type]
            if request.district_code is not None:
                # Villages carry a denormalized district code
                await transaction.village.update_many(
                    where={"tehsilCode": code},
                    data={"districtCode": request.district_code},
                )

        await self._audit("tehsil_updated", actor, code, request.model_dump(exclude_none=True))
        return TehsilResponse.from_prisma(tehsil)  # type: ignore[arg-type]

    async def delete_tehsil(self, code: str, actor: User) -> None:
        await self._require_tehsil(code)
        if await self.db.village.count(where={"tehsilCode": code}):
            raise ConflictError("Cannot delete tehsil with existing villages")
        await self.db.tehsil.delete(where={"code": code})
        await self._audit("tehsil_deleted", actor, code)

    # Villages

    async def get_village(self, code: str) -> VillageResponse:
        village = await self.db.village.find_unique(
            where={"code": code}, include={"tehsil": True, "district": True}
        )
        if not village:
            raise ResourceNotFoundError("Village")
        return VillageResponse.from_prisma(village)

    async def create_village(
        self, request: VillageCreate, actor: User
    ) -> VillageResponse:
        tehsil = await self._require_tehsil(request.tehsil_code)
        if await self.db.village.find_unique(where={"code": request.code}):
            raise ConflictError("Village code already exists")
        try:
            village = await self.db.village.create(
                data={
                    "code": request.code,
                    "name": request.name.strip(),
                    "tehsilCode": tehsil.code,
                    "districtCode": tehsil.districtCode,
                    "lat": request.lat,
                    "lon": request.lon,
                }
            )
        except UniqueViolationError:
            raise ConflictError("Village code already exists")
        await self._audit(
            "village_created", actor, village.code, {"tehsil_code": tehsil.code}
        )
        return VillageResponse.from_prisma(village)

    async def update_village(
        self, code: str, request: VillageUpdate, actor: User
    ) -> VillageResponse:
        await self._require_village(code)
        data: dict[str, Any] = {}
        if request.name is not None:
            data["name"] = request.name.strip()
        if request.tehsil_code is not None:
            tehsil = await self._require_tehsil(request.tehsil_code)
            data["tehsilCode"] = tehsil.code
            data["districtCode"] = tehsil.districtCode
        if request.lat is not None:
            data["lat"] = request.lat
        if request.lon is not None:
            data["lon"] = request.lon
        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        village = await self.db.village.update(where={"code": code}, data=data)  # type: ignore[arg-type]
        await self._audit("village_updated", actor, code, request.model_dump(exclude_none=True))
        return VillageResponse.from_prisma(village)  # type: ignore[arg-type]

    async def delete_village(self, code: str, actor: User) -> None:
        await self._require_village(code)
        references = await self.db.servicerequest.count(
            where={"villageCode": code}
        ) + await self.db.inventoryentry.count(where={"villageCode": code})
        if references:
            raise ConflictError(
                "Cannot delete village referenced by service requests or inventory"
            )
        await self.db.village.delete(where={"code": code})
        await self._audit("village_deleted", actor, code)

    # Helpers

    async def _require_state(self, code: str) -> Any:
        state = await self.db.state.find_unique(where={"code": code})
        if not state:
            raise ResourceNotFoundError("State")
        return state

    async def _require_district(self, code: str) -> Any:
        district = await self.db.district.find_unique(where={"code": code})
        if not district:
            raise ResourceNotFoundError("District")
        return district

    async def _require_tehsil(self, code: str) -> Any:
        tehsil = await self.db.tehsil.find_unique(where={"code": code})
        if not tehsil:
            raise ResourceNotFoundError("Tehsil")
        return tehsil

    async def _require_village(self, code: str) -> Any:
        village = await self.db.village.find_unique(where={"code": code})
        if not village:
            raise ResourceNotFoundError("Village")
        return village

    async def _audit(
        self,
        action: str,
        actor: User,
        code: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        await log_event(
            self.db,
            action=action,
            target_type=LOCATION_TARGET,
            actor_user_id=actor.id,
            target_id=code,
            metadata=metadata,
        )
