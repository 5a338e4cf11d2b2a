from fastapi import APIRouter, Depends, Request, status
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.domains.auth.dependencies import get_current_user
from src.domains.auth.models import (
    LoginRequest,
    LoginResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    PasswordResetResponse,
    RefreshRequest,
    RefreshResponse,
    SignupRequest,
    UserResponse,
)
from src.domains.auth.service import AuthService
from src.shared.models import MessageResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    operation_id="signup",
)
async def signup(
    payload: SignupRequest, db: Prisma = Depends(get_db)
) -> UserResponse:
    """Register with email or phone and a password (8-64 characters)."""
    service = AuthService(db)
    return await service.signup(payload)


@router.post("/login", response_model=LoginResponse, operation_id="login")
async def login(
    payload: LoginRequest, request: Request, db: Prisma = Depends(get_db)
) -> LoginResponse:
    """
    Log in with email, phone or primary login.

    Returns a 1 hour access token and a 14 day refresh token bound to a new
    session.
    """
    service = AuthService(db)
    return await service.login(
        payload.identifier,
        payload.password,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/refresh", response_model=RefreshResponse, operation_id="refreshToken")
async def refresh(
    payload: RefreshRequest, db: Prisma = Depends(get_db)
) -> RefreshResponse:
    service = AuthService(db)
    return await service.refresh(payload.refresh_token)


@router.post("/logout", response_model=MessageResponse, operation_id="logout")
async def logout(
    payload: RefreshRequest, db: Prisma = Depends(get_db)
) -> MessageResponse:
    service = AuthService(db)
    await service.logout(payload.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse, operation_id="getCurrentUser")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_prisma(user)


@router.post(
    "/password-reset/request",
    response_model=PasswordResetResponse,
    operation_id="requestPasswordReset",
)
async def request_password_reset(
    payload: PasswordResetRequest, db: Prisma = Depends(get_db)
) -> PasswordResetResponse:
    """
    Start a password reset. The response never reveals whether the account
    exists.
    """
    service = AuthService(db)
    return await service.request_password_reset(payload.identifier)


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    operation_id="confirmPasswordReset",
)
async def confirm_password_reset(
    payload: PasswordResetConfirmRequest, db: Prisma = Depends(get_db)
) -> MessageResponse:
    service = AuthService(db)
    await service.confirm_password_reset(payload)
    return MessageResponse(message="Password has been reset successfully")
