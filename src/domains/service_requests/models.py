from datetime import datetime
from typing import Any, List, Optional

from prisma.enums import ServiceRequestStatus
from prisma.models import ServiceRequest
from pydantic import BaseModel, ConfigDict, Field

from src.shared.models import Pagination


# Submission payload, shaped like the citizen form posts it
class RequestLocation(BaseModel):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    source: Optional[str] = None


class RequestAdminArea(BaseModel):
    district_id: Optional[str] = None
    tehsil_id: Optional[str] = None
    village_id: Optional[str] = None
    village_text: Optional[str] = None


class RequestClientInfo(BaseModel):
    offline_id: Optional[str] = None
    ts: Optional[datetime] = None
    net: Optional[str] = None


class ServiceRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    alternate_number: Optional[str] = Field(None, alias="alternateNumber")
    lang: str = "pa"
    location: RequestLocation = Field(default_factory=RequestLocation)
    admin: RequestAdminArea = Field(default_factory=RequestAdminArea)
    needs: List[str] = []
    details: Optional[dict[str, Any]] = None
    client: RequestClientInfo = Field(default_factory=RequestClientInfo)
    note: Optional[str] = Field(None, max_length=2000)


class ServiceRequestCreated(BaseModel):
    success: bool = True
    request_id: str
    request_number: str
    submitted_at: datetime
    status: ServiceRequestStatus


class ServiceRequestResponse(BaseModel):
    id: str
    request_number: str
    requester_name: str
    requester_phone: str
    requester_alt_phone: Optional[str] = None
    village_code: str
    village_name: str
    tehsil_code: str
    tehsil_name: str
    district_code: str
    district_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_accuracy: Optional[float] = None
    location_source: Optional[str] = None
    requested_services: List[str]
    service_details: Optional[Any] = None
    additional_notes: Optional[str] = None
    language: str
    network_quality: str
    client_timestamp: Optional[datetime] = None
    status: ServiceRequestStatus
    assigned_group_id: Optional[str] = None
    assigned_group_name: Optional[str] = None
    submitted_at: datetime
    updated_at: datetime

    @classmethod
    def from_prisma(cls, request: ServiceRequest) -> "ServiceRequestResponse":
        return cls(
            id=request.id,
            request_number=request.requestNumber,
            requester_name=request.requesterName,
            requester_phone=request.requesterPhone,
            requester_alt_phone=request.requesterAltPhone,
            village_code=request.villageCode,
            village_name=request.villageName,
            tehsil_code=request.tehsilCode,
            tehsil_name=request.tehsilName,
            district_code=request.districtCode,
            district_name=request.districtName,
            latitude=request.latitude,
            longitude=request.longitude,
            location_accuracy=request.locationAccuracy,
            location_source=request.locationSource,
            requested_services=list(request.requestedServices or []),
            service_details=request.serviceDetails,
            additional_notes=request.additionalNotes,
            language=request.language,
            network_quality=request.networkQuality,
            client_timestamp=request.clientTimestamp,
            status=request.status,
            assigned_group_id=request.assignedGroupId,
            assigned_group_name=(
                request.assignedGroup.groupName if request.assignedGroup else None
            ),
            submitted_at=request.submittedAt,
            updated_at=request.updatedAt,
        )


class ServiceRequestListResponse(BaseModel):
    service_requests: List[ServiceRequestResponse]
    pagination: Pagination


class ServiceRequestConfirmation(BaseModel):
    request_number: str
    status: ServiceRequestStatus
    submitted_at: datetime
    requested_services: List[str]
    village_name: str
    district_name: str

    @classmethod
    def from_prisma(cls, request: ServiceRequest) -> "ServiceRequestConfirmation":
        return cls(
            request_number=request.requestNumber,
            status=request.status,
            submitted_at=request.submittedAt,
            requested_services=list(request.requestedServices or []),
            village_name=request.villageName,
            district_name=request.districtName,
        )


class ServiceRequestUpdate(BaseModel):
    status: Optional[ServiceRequestStatus] = None
    assigned_group_id: Optional[str] = None
