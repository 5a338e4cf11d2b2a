import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from prisma.enums import PasswordResetChannel, UserRole
from prisma.errors import UniqueViolationError
from prisma.models import PasswordReset, User

from prisma import Prisma
from src.core.security import (
    generate_numeric_code,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
    verify_token,
)
from src.core.settings import settings
from src.core.sms import Msg91SmsService, sms_service
from src.domains.audit.service import log_event
from src.domains.auth.models import (
    LoginResponse,
    PasswordResetConfirmRequest,
    PasswordResetResponse,
    RefreshResponse,
    SignupRequest,
    UserResponse,
)
from src.domains.auth.tokens import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from src.shared.exceptions import (
    ConflictError,
    InactiveAccountError,
    InvalidCredentialsError,
    InvalidDataError,
    InvalidTokenError,
)
from src.shared.validators import is_valid_email, is_valid_phone, normalize_phone

logger = logging.getLogger(__name__)

AUTH_TARGET = "auth"
RESET_REQUESTED_MESSAGE = (
    "If an account exists for this identifier, reset instructions have been sent"
)
PHONE_LIKE = re.compile(r"^\+?[\d\s\-()]{7,}$")


def resolve_identifier(identifier: str) -> tuple[str, str]:
    """
    Classify a login identifier.

    Returns ("email", lowercased email), ("phone", E.164 phone) or
    ("login", raw identifier).
    """
    value = identifier.strip()
    if "@" in value:
        return "email", value.lower()
    if PHONE_LIKE.match(value):
        return "phone", normalize_phone(value)
    return "login", value


def role_values(user: User) -> list[str]:
    return [str(getattr(role, "value", role)) for role in user.roles]


class AuthService:
    """First-party email/phone + password authentication."""

    def __init__(self, db: Prisma, sms: Optional[Msg91SmsService] = None):
        self.db = db
        self.sms = sms or sms_service

    async def find_user_by_identifier(self, identifier: str) -> Optional[User]:
        kind, value = resolve_identifier(identifier)
        conditions: list[dict[str, str]] = [{"primaryLogin": value}]
        if kind == "email":
            conditions.append({"email": value})
        elif kind == "phone":
            conditions.append({"phone": value})
        return await self.db.user.find_first(
            where={"OR": conditions}  # type: ignore[typeddict-item]
        )

    async def signup(self, request: SignupRequest) -> UserResponse:
        """
        Register a new user with email or phone and a password.

        Raises:
            InvalidDataError: If the email or phone format is invalid
            ConflictError: If a user with the same email/phone already exists
        """
        email = request.email.strip().lower() if request.email else None
        phone = (
            normalize_phone(request.phone)
            if request.phone and request.phone.strip()
            else None
        )

        if email and not is_valid_email(email):
            raise InvalidDataError("Invalid email format")
        if phone and not is_valid_phone(phone):
            raise InvalidDataError("Invalid phone number format")

        primary_login = email or phone
        if not primary_login:
            raise InvalidDataError("Either email or phone is required")

        conditions: list[dict[str, str]] = [{"primaryLogin": primary_login}]
        if email:
            conditions.append({"email": email})
        if phone:
            conditions.append({"phone": phone})
        existing = await self.db.user.find_first(
            where={"OR": conditions}  # type: ignore[typeddict-item]
        )
        if existing:
            raise ConflictError("User already exists with this email or phone")

        try:
            user = await self.db.user.create(
                data={
                    "primaryLogin": primary_login,
                    "email": email,
                    "phone": phone,
                    "passwordHash": hash_password(request.password),
                    "roles": [UserRole.user],
                }
            )
        except UniqueViolationError:
            raise ConflictError("User already exists with this email or phone")

        await log_event(
            self.db,
            action="signup",
            target_type=AUTH_TARGET,
            actor_user_id=user.id,
            target_id=user.id,
            metadata={"method": "email" if email else "phone"},
        )
        logger.info(f"New user registered: {user.id}")
        return UserResponse.from_prisma(user)

    async def login(
        self,
        identifier: str,
        password: str,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResponse:
        """
        Verify credentials and open a new session.

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong password
            InactiveAccountError: The account has been deactivated
        """
        user = await self.find_user_by_identifier(identifier)

        if not user or not verify_password(password, user.passwordHash):
            await log_event(
                self.db,
                action="login_failed",
                target_type=AUTH_TARGET,
                actor_user_id=user.id if user else None,
                metadata={"identifier": identifier, "ip": ip},
            )
            raise InvalidCredentialsError()

        if not user.isActive:
            await log_event(
                self.db,
                action="login_failed",
                target_type=AUTH_TARGET,
                actor_user_id=user.id,
                metadata={"reason": "inactive", "ip": ip},
            )
            raise InactiveAccountError()

        now = datetime.now(timezone.utc)
        session_id = str(uuid4())
        refresh_token = create_refresh_token(user.id, session_id)

        await self.db.session.create(
            data={
                "id": session_id,
                "userId": user.id,
                "refreshTokenHash": hash_token(refresh_token),
                "ip": ip,
                "userAgent": user_agent,
                "expiresAt": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            }
        )
        updated_user = await self.db.user.update(
            where={"id": user.id}, data={"lastLoginAt": now}
        )
        if updated_user:
            user = updated_user

        await log_event(
            self.db,
            action="login_success",
            target_type=AUTH_TARGET,
            actor_user_id=user.id,
            target_id=session_id,
            metadata={"ip": ip, "user_agent": user_agent},
        )

        return LoginResponse(
            access_token=create_access_token(
                user.id, user.email, user.phone, role_values(user)
            ),
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserResponse.from_prisma(user),
        )

    async def refresh(self, refresh_token: str) -> RefreshResponse:
        """
        Issue a new access token for a live session.

        Raises:
            InvalidTokenError: Token invalid, or its session is revoked,
                expired or does not match
            InactiveAccountError: The account has been deactivated
        """
        payload = decode_refresh_token(refresh_token)
        session = await self.db.session.find_unique(where={"id": payload.sid})

        now = datetime.now(timezone.utc)
        if (
            not session
            or session.userId != payload.sub
            or session.revokedAt is not None
            or session.expiresAt <= now
            or not verify_token(refresh_token, session.refreshTokenHash)
        ):
            raise InvalidTokenError("Invalid or expired refresh token")

        user = await self.db.user.find_unique(where={"id": payload.sub})
        if not user:
            raise InvalidTokenError("Invalid or expired refresh token")
        if not user.isActive:
            raise InactiveAccountError()

        await log_event(
            self.db,
            action="token_refresh",
            target_type=AUTH_TARGET,
            actor_user_id=user.id,
            target_id=session.id,
        )
        return RefreshResponse(
            access_token=create_access_token(
                user.id, user.email, user.phone, role_values(user)
            ),
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def logout(self, refresh_token: str) -> None:
        """Revoke the session the refresh token belongs to."""
        payload = decode_refresh_token(refresh_token)
        revoked = await self.db.session.update_many(
            where={"id": payload.sid, "userId": payload.sub, "revokedAt": None},
            data={"revokedAt": datetime.now(timezone.utc)},
        )
        await log_event(
            self.db,
            action="logout",
            target_type=AUTH_TARGET,
            actor_user_id=payload.sub,
            target_id=payload.sid,
            metadata={"revoked": revoked},
        )

    async def revoke_all_sessions(self, user_id: str) -> int:
        return await self.db.session.update_many(
            where={"userId": user_id, "revokedAt": None},
            data={"revokedAt": datetime.now(timezone.utc)},
        )

    async def request_password_reset(self, identifier: str) -> PasswordResetResponse:
        """
        Start a password reset.

        The response is identical whether or not the account exists.
        Phone identifiers receive a numeric code by SMS, everything else a
        reset token.
        """
        response = PasswordResetResponse(message=RESET_REQUESTED_MESSAGE)

        user = await self.find_user_by_identifier(identifier)
        if not user or not user.isActive:
            logger.info("Password reset requested for unknown or inactive account")
            return response

        kind, value = resolve_identifier(identifier)
        use_sms = kind == "phone" or (kind == "login" and user.phone == value)
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
        )

        if use_sms and user.phone:
            secret = generate_numeric_code(settings.OTP_LENGTH)
            channel = PasswordResetChannel.sms
            secret_hash = hash_password(secret)
        else:
            secret = generate_reset_token()
            channel = PasswordResetChannel.email
            secret_hash = hash_token(secret)

        await self.db.passwordreset.create(
            data={
                "userId": user.id,
                "tokenHash": secret_hash,
                "channel": channel,
                "expiresAt": expires_at,
            }
        )

        if channel == PasswordResetChannel.sms and user.phone:
            result = await self.sms.send_otp(user.phone, secret)
            if not result.success:
                logger.warning(
                    f"Password reset SMS for user {user.id} failed: {result.message}"
                )
        else:
            # Email delivery is handled outside this service
            logger.info(f"Password reset token issued for user {user.id}")

        await log_event(
            self.db,
            action="password_reset_requested",
            target_type=AUTH_TARGET,
            actor_user_id=user.id,
            metadata={"channel": channel.value},
        )

        if settings.OTP_DEBUG:
            response.reset_token = secret
        return response

    async def confirm_password_reset(self, request: PasswordResetConfirmRequest) -> None:
        """
        Complete a password reset and revoke every session of the user.

        Raises:
            InvalidDataError: No matching, unused and unexpired reset exists
        """
        user = await self.find_user_by_identifier(request.identifier)
        if not user:
            raise InvalidDataError("Invalid or expired reset request")

        now = datetime.now(timezone.utc)
        resets = await self.db.passwordreset.find_many(
            where={"userId": user.id, "usedAt": None, "expiresAt": {"gt": now}},
            order={"createdAt": "desc"},
            take=5,
        )
        reset = self._match_reset(resets, request.token, request.otp)
        if not reset:
            raise InvalidDataError("Invalid or expired reset request")

        async with self.db.tx() as transaction:
            await transaction.user.update(
                where={"id": user.id},
                data={"passwordHash": hash_password(request.new_password)},
            )
            await transaction.passwordreset.update(
                where={"id": reset.id}, data={"usedAt": now}
            )
            await transaction.session.update_many(
                where={"userId": user.id, "revokedAt": None},
                data={"revokedAt": now},
            )

        await log_event(
            self.db,
            action="password_reset_completed",
            target_type=AUTH_TARGET,
            actor_user_id=user.id,
        )

    @staticmethod
    def _match_reset(
        resets: list[PasswordReset], token: Optional[str], otp: Optional[str]
    ) -> Optional[PasswordReset]:
        for reset in resets:
            if reset.channel == PasswordResetChannel.sms:
                if otp and verify_password(otp, reset.tokenHash):
                    return reset
            elif token and verify_token(token, reset.tokenHash):
                return reset
        return None
