from datetime import datetime
from typing import List, Optional

from prisma.models import User
from pydantic import BaseModel, Field, field_validator, model_validator

from src.shared.validators import validate_password


class UserResponse(BaseModel):
    id: str
    primary_login: str
    email: Optional[str] = None
    phone: Optional[str] = None
    roles: List[str]
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_prisma(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            primary_login=user.primaryLogin,
            email=user.email,
            phone=user.phone,
            roles=[str(getattr(role, "value", role)) for role in user.roles],
            is_active=user.isActive,
            last_login_at=user.lastLoginAt,
            created_at=user.createdAt,
        )


class SignupRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    password: str

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password(v)

    @model_validator(mode="after")
    def require_contact(self) -> "SignupRequest":
        if not (self.email or self.phone):
            raise ValueError("Either email or phone is required")
        return self


class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email, phone or login")
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., alias="refreshToken")

    model_config = {"populate_by_name": True}


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class PasswordResetRequest(BaseModel):
    identifier: str = Field(..., min_length=1)


class PasswordResetConfirmRequest(BaseModel):
    identifier: str = Field(..., min_length=1)
    token: Optional[str] = None
    otp: Optional[str] = None
    new_password: str = Field(..., alias="newPassword")

    model_config = {"populate_by_name": True}

    @field_validator("new_password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password(v)

    @model_validator(mode="after")
    def require_secret(self) -> "PasswordResetConfirmRequest":
        if not (self.token or self.otp):
            raise ValueError("Either token or otp is required")
        return self


class PasswordResetResponse(BaseModel):
    message: str
    reset_token: Optional[str] = Field(
        None, description="Only returned when OTP_DEBUG is enabled"
    )
