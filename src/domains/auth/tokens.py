from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

import jwt
from pydantic import ValidationError

from src.core.settings import settings
from src.shared.exceptions import InvalidTokenError

from .types import AccessTokenPayload, OtpTokenPayload, RefreshTokenPayload

OTP_TOKEN_PURPOSE = "relief_group_registration"


def _encode(claims: dict[str, Any], secret: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str) -> dict[str, Any]:
    try:
        return dict(jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM]))
    except jwt.PyJWTError:
        raise InvalidTokenError()


def create_access_token(
    user_id: str,
    email: Optional[str],
    phone: Optional[str],
    roles: Sequence[str],
) -> str:
    return _encode(
        {
            "sub": user_id,
            "email": email,
            "phone": phone,
            "roles": list(roles),
            "type": "access",
        },
        settings.JWT_ACCESS_SECRET,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: str, session_id: str) -> str:
    return _encode(
        {"sub": user_id, "sid": session_id, "type": "refresh"},
        settings.JWT_REFRESH_SECRET,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_otp_token(phone: str) -> str:
    return _encode(
        {"phone": phone, "verified": True, "purpose": OTP_TOKEN_PURPOSE},
        settings.JWT_ACCESS_SECRET,
        timedelta(minutes=settings.OTP_TOKEN_EXPIRE_MINUTES),
    )


def decode_access_token(token: str) -> AccessTokenPayload:
    """Verify an access token and return its typed payload."""
    payload = _decode(token, settings.JWT_ACCESS_SECRET)
    if payload.get("type") != "access":
        raise InvalidTokenError()
    try:
        return AccessTokenPayload(**payload)
    except ValidationError:
        raise InvalidTokenError()


def decode_refresh_token(token: str) -> RefreshTokenPayload:
    payload = _decode(token, settings.JWT_REFRESH_SECRET)
    if payload.get("type") != "refresh":
        raise InvalidTokenError("Invalid refresh token")
    try:
        return RefreshTokenPayload(**payload)
    except ValidationError:
        raise InvalidTokenError("Invalid refresh token")


def decode_otp_token(token: str) -> OtpTokenPayload:
    """
    Verify an OTP verification token.

    Raises InvalidTokenError when the signature, expiry, purpose or verified
    flag does not check out.
    """
    payload = _decode(token, settings.JWT_ACCESS_SECRET)
    try:
        otp_payload = OtpTokenPayload(**payload)
    except ValidationError:
        raise InvalidTokenError("Invalid OTP token")
    if not otp_payload.verified or otp_payload.purpose != OTP_TOKEN_PURPOSE:
        raise InvalidTokenError("Invalid OTP token")
    return otp_payload
