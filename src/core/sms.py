import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel

from src.core.settings import settings

logger = logging.getLogger(__name__)

OTP_MESSAGE_TEMPLATE = (
    "Your Punjab Flood Relief verification code is: {code}. "
    "Valid for {minutes} minutes."
)


class SmsResult(BaseModel):
    success: bool
    message: str
    request_id: str | None = None


class Msg91SmsService:
    """
    MSG91 SMS gateway client.

    Sends OTP codes by SMS (with a voice call fallback). Delivery problems
    never raise: they are logged and reported through ``SmsResult`` so the
    caller decides how to surface them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        sender_id: str | None = None,
        route: str | None = None,
        country_code: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.MSG91_API_KEY
        self.sender_id = sender_id or settings.MSG91_SENDER_ID
        self.route = route or settings.MSG91_ROUTE
        self.country_code = country_code or settings.MSG91_COUNTRY_CODE
        self.base_url = (base_url or settings.MSG91_BASE_URL).rstrip("/")
        self.timeout = timeout

    def _local_number(self, phone: str) -> str:
        """Strip the '+' and the configured country code from an E.164 number."""
        return re.sub(rf"^\+?{re.escape(self.country_code)}", "", phone)

    def _otp_message(self, code: str) -> str:
        return OTP_MESSAGE_TEMPLATE.format(
            code=code, minutes=settings.OTP_EXPIRE_MINUTES
        )

    async def send_otp(self, phone: str, code: str) -> SmsResult:
        """Send an OTP code by SMS."""
        payload = {
            "sender": self.sender_id,
            "route": self.route,
            "country": self.country_code,
            "sms": [
                {
                    "message": self._otp_message(code),
                    "to": [self._local_number(phone)],
                }
            ],
        }
        return await self._post("/sendsms", payload, success_message="OTP sent")

    async def send_voice_otp(self, phone: str, code: str) -> SmsResult:
        """Send an OTP code through a voice call."""
        payload = {
            "sender": self.sender_id,
            "country": self.country_code,
            "sms": [
                {
                    "message": self._otp_message(code),
                    "to": [self._local_number(phone)],
                }
            ],
        }
        return await self._post(
            "/voice/sendotp", payload, success_message="Voice OTP sent"
        )

    async def _post(
        self, path: str, payload: dict[str, Any], success_message: str
    ) -> SmsResult:
        if not self.api_key:
            logger.error("MSG91_API_KEY is not configured; cannot send SMS")
            return SmsResult(success=False, message="SMS gateway not configured")

        url = f"{self.base_url}{path}"
        headers = {"authkey": self.api_key, "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"MSG91 request to {path} failed: {e}")
            return SmsResult(success=False, message="Network error while sending SMS")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code == 200 and data.get("type") == "success":
            return SmsResult(
                success=True,
                message=success_message,
                request_id=data.get("request_id") or data.get("message"),
            )

        logger.error(
            f"MSG91 {path} returned {response.status_code}: {data or response.text}"
        )
        return SmsResult(
            success=False, message=data.get("message") or "Failed to send SMS"
        )


sms_service = Msg91SmsService()
