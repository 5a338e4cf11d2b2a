import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException
from prisma.enums import DocumentType, GroupStatus, UserRole
from prisma.errors import UniqueViolationError
from prisma.models import ReliefGroup, User

from prisma import Prisma
from src.domains.audit.service import log_event
from src.domains.auth.tokens import decode_otp_token
from src.domains.relief_groups.models import ReliefGroupCreate, ReliefGroupResponse
from src.domains.relief_groups.otp_service import normalize_rep_phone
from src.domains.uploads.service import GROUP_DOC_SCOPE
from src.shared.exceptions import (
    ConflictError,
    InvalidDataError,
    ResourceNotFoundError,
)
from src.shared.validators import is_valid_email

logger = logging.getLogger(__name__)

GROUP_TARGET = "relief_group"
GROUP_INCLUDE = {
    "representatives": True,
    "documents": True,
    "homeDistrict": True,
    "homeTehsil": True,
}


class ReliefGroupService:
    def __init__(self, db: Prisma):
        self.db = db

    async def register_group(
        self, request: ReliefGroupCreate, user: User
    ) -> ReliefGroupResponse:
        """
        Register a relief group on behalf of the current user.

        The representative's phone must have passed OTP verification; the
        otp_token proves it. The group, its representative and documents are
        written in one transaction, then the user gains the group_rep role.

        Raises:
            InvalidDataError: Bad OTP token, phone mismatch or invalid fields
            ConflictError: The user already registered a group
            ResourceNotFoundError: Home district or tehsil does not exist
        """
        rep_phone = normalize_rep_phone(request.rep_phone)
        try:
            otp_payload = decode_otp_token(request.otp_token)
        except HTTPException:
            raise InvalidDataError("Phone verification expired or invalid")
        if otp_payload.phone != rep_phone:
            raise InvalidDataError("Phone number does not match verified OTP")

        if request.contact_email and not is_valid_email(request.contact_email):
            raise InvalidDataError("Invalid contact email format")
        own_prefix = f"{GROUP_DOC_SCOPE}/{user.id}/"
        if any(
            not doc.url.startswith(own_prefix) or ".." in doc.url.split("/")
            for doc in request.documents
        ):
            raise InvalidDataError("Documents must be uploaded by the registering user")

        existing = await self.db.reliefgroup.find_first(
            where={"createdById": user.id}
        )
        if existing:
            raise ConflictError("You have already registered a relief group")

        await self._validate_home_location(
            request.home_district_code, request.home_tehsil_code
        )

        now = datetime.now(timezone.utc)
        try:
            group = await self._create_group(request, user, rep_phone, now)
        except UniqueViolationError:
            raise ConflictError("You have already registered a relief group")

        await log_event(
            self.db,
            action="relief_group_registered",
            target_type=GROUP_TARGET,
            actor_user_id=user.id,
            target_id=group.id,
            metadata={
                "group_name": group.groupName,
                "org_type": request.org_type.value,
                "documents": len(request.documents),
            },
        )
        logger.info(f"Relief group {group.id} registered by user {user.id}")

        created = await self.db.reliefgroup.find_unique(
            where={"id": group.id}, include=GROUP_INCLUDE  # type: ignore[arg-type]
        )
        return ReliefGroupResponse.from_prisma(created or group)

    async def _create_group(
        self, request: ReliefGroupCreate, user: User, rep_phone: str, now: datetime
    ) -> ReliefGroup:
        """Group, representative, documents and role grant in one transaction."""
        async with self.db.tx() as transaction:
            group = await transaction.reliefgroup.create(
                data={
                    "groupName": request.group_name.strip(),
                    "orgType": request.org_type,
                    "registrationNumber": request.registration_number,
                    "homeDistrictCode": request.home_district_code,
                    "homeTehsilCode": request.home_tehsil_code,
                    "lat": request.lat,
                    "lon": request.lon,
                    "contactEmail": request.contact_email,
                    "contactPhone": request.contact_phone,
                    "intendedOperations": request.intended_operations,
                    "serviceArea": request.service_area,
                    "status": GroupStatus.submitted,
                    "createdById": user.id,
                }
            )
            await transaction.grouprepresentative.create(
                data={
                    "groupId": group.id,
                    "name": request.rep_name.strip(),
                    "phone": rep_phone,
                    "otpVerifiedAt": now,
                }
            )
            for index, document in enumerate(request.documents):
                # The first document is the representative's ID proof
                default_type = DocumentType.rep_id if index == 0 else DocumentType.org_cert
                await transaction.document.create(
                    data={
                        "groupId": group.id,
                        "type": document.type or default_type,
                        "url": document.url,
                        "checksum": document.checksum,
                        "sizeBytes": document.size_bytes,
                    }
                )

            if UserRole.group_rep not in user.roles:
                await transaction.user.update(
                    where={"id": user.id},
                    data={"roles": {"set": [*user.roles, UserRole.group_rep]}},
                )
        return group

    async def list_my_groups(self, user: User) -> List[ReliefGroupResponse]:
        groups = await self.db.reliefgroup.find_many(
            where={"createdById": user.id},
            include=GROUP_INCLUDE,  # type: ignore[arg-type]
            order={"createdAt": "desc"},
        )
        return [ReliefGroupResponse.from_prisma(group) for group in groups]

    async def _validate_home_location(
        self, district_code: str | None, tehsil_code: str | None
    ) -> None:
        if district_code:
            district = await self.db.district.find_unique(where={"code": district_code})
            if not district:
                raise ResourceNotFoundError("District")
        if tehsil_code:
            tehsil = await self.db.tehsil.find_unique(where={"code": tehsil_code})
            if not tehsil:
                raise ResourceNotFoundError("Tehsil")
            if district_code and tehsil.districtCode != district_code:
                raise InvalidDataError("Tehsil does not belong to the selected district")
