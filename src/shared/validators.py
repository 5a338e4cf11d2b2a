import re

from src.core.settings import settings

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 64


def normalize_phone(phone: str) -> str:
    """
    Normalize a phone number to E.164.

    Numbers already carrying a '+' keep their country code; anything else is
    treated as a local number and gets the default country prefix.
    """
    cleaned = phone.strip()
    digits = re.sub(r"\D", "", cleaned)
    if cleaned.startswith("+"):
        return f"+{digits}"
    return f"{settings.DEFAULT_COUNTRY_PREFIX}{digits}"


def is_valid_phone(phone: str) -> bool:
    return bool(E164_PATTERN.match(phone))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def validate_password(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
        )
    return password
