from typing import Annotated, List, Optional

from prisma.models import District, State, Tehsil, Village
from pydantic import BaseModel, Field

LocationCode = Annotated[
    str, Field(min_length=1, max_length=20, pattern=r"^[A-Za-z0-9_-]+$")
]
LocationName = Annotated[str, Field(min_length=1, max_length=120)]


class StateResponse(BaseModel):
    code: str
    name: str

    @classmethod
    def from_prisma(cls, state: State) -> "StateResponse":
        return cls(code=state.code, name=state.name)


class DistrictResponse(BaseModel):
    code: str
    name: str
    state_code: str

    @classmethod
    def from_prisma(cls, district: District) -> "DistrictResponse":
        return cls(code=district.code, name=district.name, state_code=district.stateCode)


class TehsilResponse(BaseModel):
    code: str
    name: str
    district_code: str

    @classmethod
    def from_prisma(cls, tehsil: Tehsil) -> "TehsilResponse":
        return cls(
            code=tehsil.code, name=tehsil.name, district_code=tehsil.districtCode
        )


class VillageResponse(BaseModel):
    code: str
    name: str
    tehsil_code: str
    district_code: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    tehsil_name: Optional[str] = None
    district_name: Optional[str] = None

    @classmethod
    def from_prisma(cls, village: Village) -> "VillageResponse":
        return cls(
            code=village.code,
            name=village.name,
            tehsil_code=village.tehsilCode,
            district_code=village.districtCode,
            lat=village.lat,
            lon=village.lon,
            tehsil_name=village.tehsil.name if village.tehsil else None,
            district_name=village.district.name if village.district else None,
        )


class NearbyVillageResponse(VillageResponse):
    distance_km: float


# Hierarchy / detail views
class TehsilNode(TehsilResponse):
    villages: List[VillageResponse] = []


class DistrictNode(DistrictResponse):
    tehsils: List[TehsilNode] = []


class StateNode(StateResponse):
    districts: List[DistrictNode] = []


class LocationHierarchy(BaseModel):
    states: List[StateNode]


class StateDetail(StateResponse):
    districts: List[DistrictResponse] = []


class DistrictDetail(DistrictResponse):
    tehsils: List[TehsilResponse] = []


class TehsilDetail(TehsilResponse):
    villages: List[VillageResponse] = []


# Admin writes
class StateCreate(BaseModel):
    code: LocationCode
    name: LocationName


class StateUpdate(BaseModel):
    name: LocationName


class DistrictCreate(BaseModel):
    code: LocationCode
    name: LocationName
    state_code: str = Field(..., min_length=1)


class DistrictUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    state_code: Optional[str] = Field(None, min_length=1)


class TehsilCreate(BaseModel):
    code: LocationCode
    name: LocationName
    district_code: str = Field(..., min_length=1)


class TehsilUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    district_code: Optional[str] = Field(None, min_length=1)


class VillageCreate(BaseModel):
    code: LocationCode
    name: LocationName
    tehsil_code: str = Field(..., min_length=1)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)


class VillageUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    tehsil_code: Optional[str] = Field(None, min_length=1)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
