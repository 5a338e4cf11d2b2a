from datetime import datetime
from typing import List, Optional

from prisma.enums import AlertSeverity, LocationType
from prisma.models import Alert, AlertCategory, AlertStatus
from pydantic import BaseModel, Field

from src.domains.admin.models import UserSummary


# Categories and statuses
class AlertStatusResponse(BaseModel):
    id: str
    category_id: str
    name: str
    value: str
    color: Optional[str] = None
    description: Optional[str] = None
    order_index: int
    is_active: bool

    @classmethod
    def from_prisma(cls, status: AlertStatus) -> "AlertStatusResponse":
        return cls(
            id=status.id,
            category_id=status.categoryId,
            name=status.name,
            value=status.value,
            color=status.color,
            description=status.description,
            order_index=status.orderIndex,
            is_active=status.isActive,
        )


class AlertCategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    order_index: int
    is_active: bool
    statuses: List[AlertStatusResponse] = []
    status_count: int = 0

    @classmethod
    def from_prisma(cls, category: AlertCategory) -> "AlertCategoryResponse":
        statuses = [AlertStatusResponse.from_prisma(s) for s in category.statuses or []]
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            order_index=category.orderIndex,
            is_active=category.isActive,
            statuses=statuses,
            status_count=len(statuses),
        )


class AlertCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: int = Field(0, ge=0)


class AlertCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class AlertStatusCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    value: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., min_length=1)
    description: Optional[str] = None
    order_index: int = Field(0, ge=0)


class AlertStatusUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    value: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


# Location alerts
class AlertResponse(BaseModel):
    id: str
    category_id: str
    status_id: str
    location_type: LocationType
    state_code: Optional[str] = None
    district_code: Optional[str] = None
    tehsil_code: Optional[str] = None
    village_code: Optional[str] = None
    location_name: Optional[str] = None
    notes: Optional[str] = None
    severity: AlertSeverity
    is_active: bool
    category_name: Optional[str] = None
    status_name: Optional[str] = None
    status_value: Optional[str] = None
    status_color: Optional[str] = None
    created_by: Optional[UserSummary] = None
    updated_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_prisma(cls, alert: Alert) -> "AlertResponse":
        location = {
            LocationType.state: alert.state,
            LocationType.district: alert.district,
            LocationType.tehsil: alert.tehsil,
            LocationType.village: alert.village,
        }.get(alert.locationType)
        return cls(
            id=alert.id,
            category_id=alert.categoryId,
            status_id=alert.statusId,
            location_type=alert.locationType,
            state_code=alert.stateCode,
            district_code=alert.districtCode,
            tehsil_code=alert.tehsilCode,
            village_code=alert.villageCode,
            location_name=location.name if location else None,
            notes=alert.notes,
            severity=alert.severity,
            is_active=alert.isActive,
            category_name=alert.category.name if alert.category else None,
            status_name=alert.status.name if alert.status else None,
            status_value=alert.status.value if alert.status else None,
            status_color=alert.status.color if alert.status else None,
            created_by=(
                UserSummary.from_prisma(alert.createdBy) if alert.createdBy else None
            ),
            updated_by=(
                UserSummary.from_prisma(alert.updatedBy) if alert.updatedBy else None
            ),
            created_at=alert.createdAt,
            updated_at=alert.updatedAt,
        )


class GroupedAlerts(BaseModel):
    states: List[AlertResponse] = []
    districts: List[AlertResponse] = []
    tehsils: List[AlertResponse] = []
    villages: List[AlertResponse] = []


class AlertListResponse(BaseModel):
    alerts: GroupedAlerts
    total: int


class AlertCreate(BaseModel):
    category_id: str = Field(..., min_length=1)
    status_id: str = Field(..., min_length=1)
    location_type: LocationType
    state_code: Optional[str] = None
    district_code: Optional[str] = None
    tehsil_code: Optional[str] = None
    village_code: Optional[str] = None
    notes: Optional[str] = None
    severity: AlertSeverity = AlertSeverity.info
    is_active: bool = True

    def location_code(self) -> Optional[str]:
        """The code field matching location_type."""
        return getattr(self, f"{self.location_type.value}_code")


class BulkAlertUpdate(BaseModel):
    category_id: str = Field(..., min_length=1)
    status_id: str = Field(..., min_length=1)
    location_type: LocationType
    location_codes: List[str] = Field(..., min_length=1)
    notes: Optional[str] = None
    severity: Optional[AlertSeverity] = None
    is_active: bool = True


class BulkAlertResult(BaseModel):
    total: int
    created: int
    updated: int
    alerts: List[AlertResponse]


class LocationAlertUpdate(BaseModel):
    status_id: Optional[str] = None
    notes: Optional[str] = None
    severity: Optional[AlertSeverity] = None
    is_active: Optional[bool] = None
