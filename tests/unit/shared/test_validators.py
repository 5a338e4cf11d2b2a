"""
Tests for phone, email and password validators in src/shared/validators.py
"""

import pytest

from src.shared.validators import (
    is_valid_email,
    is_valid_phone,
    normalize_phone,
    validate_password,
)


class TestNormalizePhone:
    def test_local_number_gets_default_prefix(self):
        assert normalize_phone("98765 43210") == "+919876543210"

    def test_international_number_is_kept(self):
        assert normalize_phone("+44 20 7946 0958") == "+442079460958"

    def test_strips_punctuation(self):
        assert normalize_phone(" +91-98765-43210 ") == "+919876543210"


class TestFormatChecks:
    @pytest.mark.parametrize(
        "phone,expected",
        [("+919876543210", True), ("9876543210", False), ("+0123", False)],
    )
    def test_is_valid_phone(self, phone, expected):
        assert is_valid_phone(phone) is expected

    @pytest.mark.parametrize(
        "email,expected",
        [("rep@example.org", True), ("not-an-email", False), ("a b@c.d", False)],
    )
    def test_is_valid_email(self, email, expected):
        assert is_valid_email(email) is expected


class TestValidatePassword:
    def test_accepts_reasonable_password(self):
        assert validate_password("floodrelief25") == "floodrelief25"

    def test_rejects_short_password(self):
        with pytest.raises(ValueError, match="at least 8"):
            validate_password("short")

    def test_rejects_long_password(self):
        with pytest.raises(ValueError, match="at most 64"):
            validate_password("x" * 65)
