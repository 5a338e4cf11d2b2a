from fastapi import Depends, Header
from prisma.models import User

from prisma import Prisma
from src.core.database import get_db
from src.shared.exceptions import (
    InactiveAccountError,
    MissingTokenError,
    UserNotFoundError,
)

from .tokens import decode_access_token
from .types import AccessTokenPayload


def get_bearer_token(authorization: str = Header(None)) -> str:
    """
    Extracts the bearer token from the Authorization header.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise MissingTokenError()

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise MissingTokenError()
    return token


def get_token_payload(token: str = Depends(get_bearer_token)) -> AccessTokenPayload:
    """
    Verifies the access token and returns its claims.
    """
    return decode_access_token(token)


async def get_current_user(
    payload: AccessTokenPayload = Depends(get_token_payload),
    db: Prisma = Depends(get_db),
) -> User:
    """
    Loads the authenticated user. Deactivated accounts are rejected even
    while their access token is still valid.
    """
    user = await db.user.find_unique(where={"id": payload.sub})
    if not user:
        raise UserNotFoundError()
    if not user.isActive:
        raise InactiveAccountError()
    return user
