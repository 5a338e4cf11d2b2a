from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.locations.models import (
    DistrictCreate,
    DistrictDetail,
    DistrictResponse,
    DistrictUpdate,
    LocationHierarchy,
    NearbyVillageResponse,
    StateCreate,
    StateDetail,
    StateResponse,
    StateUpdate,
    TehsilCreate,
    TehsilDetail,
    TehsilResponse,
    TehsilUpdate,
    VillageCreate,
    VillageResponse,
    VillageUpdate,
)
from src.domains.locations.service import LocationService
from src.shared.permissions import Permission, require_permission

router = APIRouter(prefix="/locations", tags=["Locations"])
admin_router = APIRouter(prefix="/admin/locations", tags=["Admin Locations"])


@router.get(
    "/hierarchy", response_model=LocationHierarchy, operation_id="getLocationHierarchy"
)
async def get_hierarchy(db: Prisma = Depends(get_db)) -> LocationHierarchy:
    """Full state → district → tehsil → village tree."""
    service = LocationService(db)
    return await service.get_hierarchy()


@router.get("/states", response_model=List[StateResponse], operation_id="listStates")
async def list_states(db: Prisma = Depends(get_db)) -> List[StateResponse]:
    service = LocationService(db)
    return await service.list_states()


@router.get(
    "/districts", response_model=List[DistrictResponse], operation_id="listDistricts"
)
async def list_districts(
    state_code: Optional[str] = Query(None),
    db: Prisma = Depends(get_db),
) -> List[DistrictResponse]:
    service = LocationService(db)
    return await service.list_districts(state_code)


@router.get("/tehsils", response_model=List[TehsilResponse], operation_id="listTehsils")
async def list_tehsils(
    district_code: Optional[str] = Query(None),
    db: Prisma = Depends(get_db),
) -> List[TehsilResponse]:
    service = LocationService(db)
    return await service.list_tehsils(district_code)


@router.get(
    "/villages", response_model=List[VillageResponse], operation_id="listVillages"
)
async def list_villages(
    tehsil_code: Optional[str] = Query(None),
    db: Prisma = Depends(get_db),
) -> List[VillageResponse]:
    service = LocationService(db)
    return await service.list_villages(tehsil_code)


@router.get(
    "/villages/search",
    response_model=List[VillageResponse],
    operation_id="searchVillages",
)
async def search_villages(
    q: str = Query(""),
    db: Prisma = Depends(get_db),
) -> List[VillageResponse]:
    """
    Search villages by name (case-insensitive, at most 50 results).

    Queries shorter than two characters return an empty list.
    """
    service = LocationService(db)
    return await service.search_villages(q)


@router.get(
    "/villages/nearest",
    response_model=List[NearbyVillageResponse],
    operation_id="findNearestVillages",
)
async def nearest_villages(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    db: Prisma = Depends(get_db),
) -> List[NearbyVillageResponse]:
    service = LocationService(db)
    return await service.nearest_villages(lat, lng)


@router.get(
    "/villages/{code}", response_model=VillageResponse, operation_id="getVillage"
)
async def get_village(code: str, db: Prisma = Depends(get_db)) -> VillageResponse:
    service = LocationService(db)
    return await service.get_village(code)


# Admin management


@admin_router.get(
    "/states/{code}", response_model=StateDetail, operation_id="adminGetState"
)
async def admin_get_state(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> StateDetail:
    service = LocationService(db)
    return await service.get_state(code)


@admin_router.post(
    "/states",
    response_model=StateResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createState",
)
async def create_state(
    payload: StateCreate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> StateResponse:
    service = LocationService(db)
    return await service.create_state(payload, user)


@admin_router.put(
    "/states/{code}", response_model=StateResponse, operation_id="updateState"
)
async def update_state(
    code: str,
    payload: StateUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> StateResponse:
    service = LocationService(db)
    return await service.update_state(code, payload, user)


@admin_router.delete(
    "/states/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteState",
)
async def delete_state(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> None:
    service = LocationService(db)
    await service.delete_state(code, user)


@admin_router.get(
    "/districts/{code}", response_model=DistrictDetail, operation_id="adminGetDistrict"
)
async def admin_get_district(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> DistrictDetail:
    service = LocationService(db)
    return await service.get_district(code)


@admin_router.post(
    "/districts",
    response_model=DistrictResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createDistrict",
)
async def create_district(
    payload: DistrictCreate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> DistrictResponse:
    service = LocationService(db)
    return await service.create_district(payload, user)


@admin_router.put(
    "/districts/{code}", response_model=DistrictResponse, operation_id="updateDistrict"
)
async def update_district(
    code: str,
    payload: DistrictUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> DistrictResponse:
    service = LocationService(db)
    return await service.update_district(code, payload, user)


@admin_router.delete(
    "/districts/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteDistrict",
)
async def delete_district(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> None:
    service = LocationService(db)
    await service.delete_district(code, user)


@admin_router.get(
    "/tehsils/{code}", response_model=TehsilDetail, operation_id="adminGetTehsil"
)
async def admin_get_tehsil(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> TehsilDetail:
    service = LocationService(db)
    return await service.get_tehsil(code)


@admin_router.post(
    "/tehsils",
    response_model=TehsilResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createTehsil",
)
async def create_tehsil(
    payload: TehsilCreate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> TehsilResponse:
    service = LocationService(db)
    return await service.create_tehsil(payload, user)


@admin_router.put(
    "/tehsils/{code}", response_model=TehsilResponse, operation_id="updateTehsil"
)
async def update_tehsil(
    code: str,
    payload: TehsilUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> TehsilResponse:
    service = LocationService(db)
    return await service.update_tehsil(code, payload, user)


@admin_router.delete(
    "/tehsils/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteTehsil",
)
async def delete_tehsil(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> None:
    service = LocationService(db)
    await service.delete_tehsil(code, user)


@admin_router.post(
    "/villages",
    response_model=VillageResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="createVillage",
)
async def create_village(
    payload: VillageCreate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> VillageResponse:
    """District code is taken from the parent tehsil."""
    service = LocationService(db)
    return await service.create_village(payload, user)


@admin_router.put(
    "/villages/{code}", response_model=VillageResponse, operation_id="updateVillage"
)
async def update_village(
    code: str,
    payload: VillageUpdate,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> VillageResponse:
    service = LocationService(db)
    return await service.update_village(code, payload, user)


@admin_router.delete(
    "/villages/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteVillage",
)
async def delete_village(
    code: str,
    user: User = Depends(require_permission(Permission.MANAGE_LOCATIONS)),
    db: Prisma = Depends(get_db),
) -> None:
    service = LocationService(db)
    await service.delete_village(code, user)
