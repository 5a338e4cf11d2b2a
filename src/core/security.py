import hashlib
import secrets

import bcrypt

from src.core.settings import settings

# bcrypt only considers the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password (or short code) with bcrypt using BCRYPT_ROUNDS."""
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a plain value against a stored bcrypt hash."""
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_token(token: str) -> str:
    """
    Hash a long opaque token (refresh JWT, reset token) for storage.

    Tokens are SHA-256 digested before bcrypt so that tokens sharing a
    72-byte prefix still produce distinct hashes.
    """
    return hash_password(_digest(token))


def verify_token(token: str, hashed_token: str) -> bool:
    return verify_password(_digest(token), hashed_token)


def generate_numeric_code(length: int) -> str:
    """Generate a random numeric code of the given length (leading zeros kept)."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def generate_reset_token() -> str:
    return secrets.token_hex(32)
