"""
Global pytest configuration and fixtures for the flood relief API test suite.
"""

from datetime import datetime, timezone
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import jwt
import pytest
from fastapi.testclient import TestClient

from prisma import Prisma
from src.core.settings import settings
from src.main import app

# Import fixtures from fixture modules
from tests.fixtures.alert_fixtures import *  # noqa: F403, F401
from tests.fixtures.auth_fixtures import *  # noqa: F403, F401
from tests.fixtures.inventory_fixtures import *  # noqa: F403, F401
from tests.fixtures.location_fixtures import *  # noqa: F403, F401
from tests.fixtures.relief_group_fixtures import *  # noqa: F403, F401
from tests.fixtures.service_request_fixtures import *  # noqa: F403, F401

MODEL_ACCESSORS = [
    "user",
    "session",
    "passwordreset",
    "otprequest",
    "auditlog",
    "reliefgroup",
    "grouprepresentative",
    "document",
    "service",
    "state",
    "district",
    "tehsil",
    "village",
    "alertcategory",
    "alertstatus",
    "alert",
    "inventoryitemtype",
    "provider",
    "inventoryentry",
    "resupplyrequest",
    "donationoffer",
    "servicerequest",
]
QUERY_METHODS = [
    "find_unique",
    "find_first",
    "find_many",
    "create",
    "create_many",
    "update",
    "update_many",
    "upsert",
    "delete",
    "delete_many",
    "count",
]


@pytest.fixture
def mock_prisma() -> Mock:
    """
    Mock Prisma client for unit tests that don't need real database.

    Every model accessor exposes AsyncMock query methods, and `tx()` yields
    the same mock so code inside a transaction hits the same expectations.
    """
    mock_db = Mock(spec=Prisma)
    for accessor in MODEL_ACCESSORS:
        model = Mock()
        for method in QUERY_METHODS:
            setattr(model, method, AsyncMock())
        model.find_many.return_value = []
        model.count.return_value = 0
        model.update_many.return_value = 1
        setattr(mock_db, accessor, model)

    tx_context = MagicMock()
    tx_context.__aenter__ = AsyncMock(return_value=mock_db)
    tx_context.__aexit__ = AsyncMock(return_value=False)
    mock_db.tx = Mock(return_value=tx_context)

    return mock_db


@pytest.fixture
def test_jwt_secret() -> str:
    """Secret the app signs access tokens with."""
    return settings.JWT_ACCESS_SECRET


@pytest.fixture
def valid_jwt_payload() -> Dict[str, Any]:
    """Valid access token payload for testing."""
    now = int(datetime.now(timezone.utc).timestamp())
    return {
        "sub": "test-user-id-123",
        "email": "test@example.com",
        "phone": None,
        "roles": ["user"],
        "type": "access",
        "iat": now,
        "exp": now + 3600,
    }


@pytest.fixture
def valid_jwt_token(test_jwt_secret: str, valid_jwt_payload: Dict[str, Any]) -> str:
    """Generate a valid JWT token for testing."""
    return jwt.encode(valid_jwt_payload, test_jwt_secret, algorithm="HS256")


@pytest.fixture
def invalid_jwt_token() -> str:
    """Generate an invalid JWT token for testing."""
    return jwt.encode({"invalid": "payload"}, "wrong-secret", algorithm="HS256")


@pytest.fixture
def auth_headers(valid_jwt_token: str) -> Dict[str, str]:
    """Generate authentication headers with valid JWT token."""
    return {"Authorization": f"Bearer {valid_jwt_token}"}


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client; the lifespan is not run so no database is needed."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def fast_bcrypt():
    """Use the minimum bcrypt cost so hashing in tests stays fast."""
    with patch.object(settings, "BCRYPT_ROUNDS", 4):
        yield
