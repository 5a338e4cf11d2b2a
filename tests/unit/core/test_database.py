"""
Tests for Prisma connection helpers in src/core/database.py
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.core.database import connect_db, disconnect_db, get_db


def make_client(connected: bool) -> Mock:
    client = Mock()
    client.is_connected = Mock(return_value=connected)
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    return client


class TestConnectionHelpers:
    @pytest.mark.asyncio
    async def test_connect_when_disconnected(self):
        client = make_client(connected=False)
        with patch("src.core.database.prisma", client):
            await connect_db()

        client.connect.assert_called_once()

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self):
        client = make_client(connected=True)
        with patch("src.core.database.prisma", client):
            await connect_db()

        client.connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_disconnect_only_when_connected(self):
        client = make_client(connected=False)
        with patch("src.core.database.prisma", client):
            await disconnect_db()

        client.disconnect.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_db_returns_shared_client(self):
        client = make_client(connected=True)
        with patch("src.core.database.prisma", client):
            assert await get_db() is client
