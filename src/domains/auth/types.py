"""Auth domain type definitions for type safety."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AccessTokenPayload(BaseModel):
    """Access token payload structure."""

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User email address")
    phone: Optional[str] = Field(None, description="User phone number (E.164)")
    roles: list[str] = Field(default_factory=list, description="User roles")
    type: Literal["access"] = Field("access", description="Token type")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")

    model_config = {"extra": "allow"}


class RefreshTokenPayload(BaseModel):
    """Refresh token payload structure."""

    sub: str = Field(..., description="Subject (user ID)")
    sid: str = Field(..., description="Session identifier")
    type: Literal["refresh"] = Field("refresh", description="Token type")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")

    model_config = {"extra": "allow"}


class OtpTokenPayload(BaseModel):
    """Proof that a phone number passed OTP verification."""

    phone: str = Field(..., description="Verified phone number (E.164)")
    verified: bool = Field(False, description="Whether the OTP was verified")
    purpose: str = Field(..., description="What the verification unlocks")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")

    model_config = {"extra": "allow"}
