"""Test configuration for the active-record package."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from cqrs_ddd_active_record import (
    EntityOperations,
    GatewayRegistry,
    MongoHost,
    MongoSettings,
)

pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def settings():
    """Settings with a short bounded wait so timeouts stay fast."""
    return MongoSettings(
        url="mongodb://mock:27017",
        database="test_db",
        poll_interval=0.01,
        max_attempts=5,
    )


@pytest.fixture
def mock_client():
    """Create a mock MongoDB client."""
    try:
        from mongomock_motor import AsyncMongoMockClient
    except ImportError:
        pytest.skip("mongomock-motor not installed")
    return AsyncMongoMockClient()


@pytest.fixture
def host(mock_client, settings):
    """A MongoHost already marked connected to a mongomock database."""
    host = MongoHost(settings)
    host._client = mock_client
    host._database = mock_client.get_database("test_db")
    host._connected = True
    return host


@pytest.fixture
def registry(host):
    return GatewayRegistry(host)


@pytest.fixture
def ops(registry):
    return EntityOperations(registry)


@pytest.fixture
def probe_client():
    """A Motor-shaped client whose connectivity probe succeeds."""
    client = MagicMock()
    client.list_database_names = AsyncMock(return_value=["admin", "test_db"])
    client.admin.command = AsyncMock(return_value={"ok": 1})
    return client


@pytest.fixture(scope="module")
def mongo_container():
    """Create a MongoDB container using testcontainers."""
    pytest.importorskip("testcontainers")

    from testcontainers.mongodb import MongoDbContainer

    container = MongoDbContainer("mongo:7.0")
    try:
        container.start()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"MongoDB container unavailable: {e}")
    yield container
    container.stop()
