import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from prisma.enums import OtpChannel

from prisma import Prisma
from src.core.security import generate_numeric_code, hash_password, verify_password
from src.core.settings import settings
from src.core.sms import Msg91SmsService, sms_service
from src.domains.auth.tokens import create_otp_token
from src.domains.relief_groups.models import OtpRequestResponse, OtpVerifyResponse
from src.shared.exceptions import (
    InvalidDataError,
    RateLimitExceededError,
    SmsDeliveryError,
)
from src.shared.validators import is_valid_phone, normalize_phone

logger = logging.getLogger(__name__)


def normalize_rep_phone(raw_phone: str) -> str:
    phone = normalize_phone(raw_phone)
    if not is_valid_phone(phone):
        raise InvalidDataError("Invalid phone number format")
    return phone


class OtpService:
    """
    One-time codes proving control of a representative's phone number.

    Codes are random, stored only as bcrypt hashes, expire after
    OTP_EXPIRE_MINUTES and are rate limited per phone number.
    """

    def __init__(self, db: Prisma, sms: Optional[Msg91SmsService] = None):
        self.db = db
        self.sms = sms or sms_service

    async def _enforce_rate_limits(self, phone: str, now: datetime) -> None:
        recent = await self.db.otprequest.count(
            where={"phone": phone, "createdAt": {"gte": now - timedelta(minutes=1)}}
        )
        if recent >= settings.OTP_MAX_PER_MINUTE:
            raise RateLimitExceededError(
                "Too many requests. Please wait a minute before trying again"
            )

        daily = await self.db.otprequest.count(
            where={"phone": phone, "createdAt": {"gte": now - timedelta(days=1)}}
        )
        if daily >= settings.OTP_MAX_PER_DAY:
            raise RateLimitExceededError(
                "Daily limit exceeded. Please try again tomorrow"
            )

    async def request_otp(
        self, raw_phone: str, channel: OtpChannel = OtpChannel.sms
    ) -> OtpRequestResponse:
        """
        Generate and send a verification code.

        Raises:
            InvalidDataError: Phone number is not valid E.164 after normalizing
            RateLimitExceededError: Per-minute or per-day limit reached
            SmsDeliveryError: The SMS gateway rejected the message
        """
        phone = normalize_rep_phone(raw_phone)
        now = datetime.now(timezone.utc)
        await self._enforce_rate_limits(phone, now)

        code = generate_numeric_code(settings.OTP_LENGTH)
        await self.db.otprequest.create(
            data={
                "phone": phone,
                "otpHash": hash_password(code),
                "channel": channel,
                "expiresAt": now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            }
        )

        if channel == OtpChannel.voice:
            result = await self.sms.send_voice_otp(phone, code)
        else:
            result = await self.sms.send_otp(phone, code)

        if not result.success:
            logger.warning(f"OTP delivery to {phone} failed: {result.message}")
            if not settings.OTP_DEBUG:
                raise SmsDeliveryError()

        return OtpRequestResponse(
            channel=channel,
            expires_in=settings.OTP_EXPIRE_MINUTES * 60,
            test_otp=code if settings.OTP_DEBUG else None,
        )

    async def verify_otp(self, raw_phone: str, code: str) -> OtpVerifyResponse:
        """
        Check a code against the newest live OTP for the phone.

        Each wrong guess counts against OTP_MAX_ATTEMPTS; reaching the limit
        burns the OTP.

        Raises:
            InvalidDataError: Bad format, no live OTP, wrong code or too many
                attempts
        """
        phone = normalize_rep_phone(raw_phone)
        code = code.strip()
        if len(code) != settings.OTP_LENGTH or not code.isdigit():
            raise InvalidDataError(f"OTP must be {settings.OTP_LENGTH} digits")

        now = datetime.now(timezone.utc)
        otp = await self.db.otprequest.find_first(
            where={"phone": phone, "usedAt": None, "expiresAt": {"gt": now}},
            order={"createdAt": "desc"},
        )
        if not otp:
            raise InvalidDataError("OTP expired or not found")

        if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
            await self._burn(otp.id, now)
            raise InvalidDataError("Too many failed attempts. Request a new OTP")

        # Reserve an attempt before the bcrypt check
        reserved = await self.db.otprequest.update_many(
            where={
                "id": otp.id,
                "usedAt": None,
                "attempts": {"lt": settings.OTP_MAX_ATTEMPTS},
            },
            data={"attempts": {"increment": 1}},
        )
        if reserved == 0:
            await self._burn(otp.id, now)
            raise InvalidDataError("Too many failed attempts. Request a new OTP")

        if not verify_password(code, otp.otpHash):
            if otp.attempts + 1 >= settings.OTP_MAX_ATTEMPTS:
                await self._burn(otp.id, now)
            raise InvalidDataError("Invalid OTP")

        claimed = await self._burn(otp.id, now)
        if claimed == 0:
            raise InvalidDataError("OTP expired or not found")
        logger.info(f"OTP verified for {phone}")

        return OtpVerifyResponse(
            verified=True,
            otp_token=create_otp_token(phone),
            expires_in=settings.OTP_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def _burn(self, otp_id: str, now: datetime) -> int:
        """Mark a live OTP used; returns 0 when another request already did."""
        return await self.db.otprequest.update_many(
            where={"id": otp_id, "usedAt": None}, data={"usedAt": now}
        )
