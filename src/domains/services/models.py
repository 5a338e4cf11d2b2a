from datetime import datetime
from typing import List, Optional

from prisma.models import Service
from pydantic import BaseModel, Field, field_validator

from src.shared.models import Pagination


class ServiceResponse(BaseModel):
    id: str
    broad_category: str
    subcategory: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_prisma(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            broad_category=service.broadCategory,
            subcategory=service.subcategory,
            created_at=service.createdAt,
            updated_at=service.updatedAt,
        )


class ServiceListResponse(BaseModel):
    services: List[ServiceResponse]
    pagination: Pagination


class ServiceCreate(BaseModel):
    broad_category: str = Field(..., min_length=1, max_length=100)
    subcategory: str = Field(..., min_length=1, max_length=150)

    @field_validator("broad_category", "subcategory")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v


class ServiceUpdate(BaseModel):
    broad_category: Optional[str] = Field(None, min_length=1, max_length=100)
    subcategory: Optional[str] = Field(None, min_length=1, max_length=150)

    @field_validator("broad_category", "subcategory")
    @classmethod
    def strip_value(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v
