from datetime import datetime
from typing import List, Optional

from prisma.enums import DocumentType, GroupStatus, OrgType, OtpChannel
from prisma.models import Document, GroupRepresentative, ReliefGroup
from pydantic import BaseModel, Field


# OTP verification
class OtpRequestPayload(BaseModel):
    rep_phone: str = Field(..., min_length=7, max_length=20)
    channel: OtpChannel = OtpChannel.sms


class OtpRequestResponse(BaseModel):
    status: str = "sent"
    channel: OtpChannel
    expires_in: int
    test_otp: Optional[str] = Field(
        None, description="Only returned when OTP_DEBUG is enabled"
    )


class OtpVerifyPayload(BaseModel):
    rep_phone: str = Field(..., min_length=7, max_length=20)
    code: str = Field(..., min_length=1, max_length=10)


class OtpVerifyResponse(BaseModel):
    verified: bool
    otp_token: str
    expires_in: int


# Registration
class DocumentInput(BaseModel):
    url: str = Field(..., min_length=1)
    type: Optional[DocumentType] = None
    checksum: Optional[str] = None
    size_bytes: Optional[int] = Field(None, ge=0)


class ReliefGroupCreate(BaseModel):
    group_name: str = Field(..., min_length=2, max_length=120)
    org_type: OrgType
    registration_number: Optional[str] = None
    home_district_code: Optional[str] = None
    home_tehsil_code: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    intended_operations: List[str] = []
    service_area: List[str] = []
    rep_name: str = Field(..., min_length=1, max_length=120)
    rep_phone: str
    otp_token: str
    documents: List[DocumentInput] = []


class RepresentativeResponse(BaseModel):
    id: str
    name: str
    phone: str
    otp_verified_at: Optional[datetime] = None

    @classmethod
    def from_prisma(cls, rep: GroupRepresentative) -> "RepresentativeResponse":
        return cls(
            id=rep.id, name=rep.name, phone=rep.phone, otp_verified_at=rep.otpVerifiedAt
        )


class DocumentResponse(BaseModel):
    id: str
    type: DocumentType
    url: str
    checksum: Optional[str] = None
    size_bytes: Optional[int] = None
    uploaded_at: Optional[datetime] = None

    @classmethod
    def from_prisma(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            type=document.type,
            url=document.url,
            checksum=document.checksum,
            size_bytes=document.sizeBytes,
            uploaded_at=document.uploadedAt,
        )


class ReliefGroupResponse(BaseModel):
    id: str
    group_name: str
    org_type: OrgType
    status: GroupStatus
    registration_number: Optional[str] = None
    home_district_code: Optional[str] = None
    home_district_name: Optional[str] = None
    home_tehsil_code: Optional[str] = None
    home_tehsil_name: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    intended_operations: List[str] = []
    service_area: List[str] = []
    created_by: str
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    representatives: List[RepresentativeResponse] = []
    documents: List[DocumentResponse] = []
    document_count: int = 0

    @classmethod
    def from_prisma(cls, group: ReliefGroup) -> "ReliefGroupResponse":
        documents = group.documents or []
        return cls(
            id=group.id,
            group_name=group.groupName,
            org_type=group.orgType,
            status=group.status,
            registration_number=group.registrationNumber,
            home_district_code=group.homeDistrictCode,
            home_district_name=(
                group.homeDistrict.name if group.homeDistrict else None
            ),
            home_tehsil_code=group.homeTehsilCode,
            home_tehsil_name=group.homeTehsil.name if group.homeTehsil else None,
            lat=group.lat,
            lon=group.lon,
            contact_email=group.contactEmail,
            contact_phone=group.contactPhone,
            intended_operations=list(group.intendedOperations or []),
            service_area=list(group.serviceArea or []),
            created_by=group.createdById,
            reviewed_at=group.reviewedAt,
            review_notes=group.reviewNotes,
            created_at=group.createdAt,
            representatives=[
                RepresentativeResponse.from_prisma(rep)
                for rep in (group.representatives or [])
            ],
            documents=[DocumentResponse.from_prisma(doc) for doc in documents],
            document_count=len(documents),
        )
