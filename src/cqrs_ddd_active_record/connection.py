"""MongoHost — Motor client lifecycle with a bounded wait for readiness."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pymongo.errors import InvalidName, PyMongoError

from .config import MongoSettings
from .exceptions import (
    CollectionUnavailableError,
    ConnectionTimeoutError,
    MongoConfigurationError,
    MongoConnectionError,
    NotConnectedError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from motor.motor_asyncio import (
        AsyncIOMotorClient,
        AsyncIOMotorCollection,
        AsyncIOMotorDatabase,
    )

    ClientFactory = Callable[[MongoSettings], Any]

logger = logging.getLogger("cqrs_ddd.active_record.host")


def _motor_client(settings: MongoSettings) -> AsyncIOMotorClient[Any]:
    try:
        from motor.motor_asyncio import AsyncIOMotorClient
    except ImportError as e:
        raise MongoConnectionError(
            "motor is required; install with motor>=3.3.0"
        ) from e
    return AsyncIOMotorClient(
        settings.url,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        connectTimeoutMS=settings.connect_timeout_ms,
        tz_aware=True,
        **settings.client_options,
    )


class MongoHost:
    """Owns the process-wide client and database handle.

    ``start`` and ``stop`` are driven by the hosting process. Collection
    lookups made before ``start`` has finished poll the connected flag every
    ``poll_interval`` seconds, up to ``max_attempts`` times, then raise
    :class:`ConnectionTimeoutError`. Lookups made after ``stop`` raise
    :class:`NotConnectedError` straight away.
    """

    def __init__(
        self,
        settings: MongoSettings | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._settings = settings or MongoSettings()
        self._client_factory = client_factory or _motor_client
        self._client: AsyncIOMotorClient[Any] | None = None
        self._database: AsyncIOMotorDatabase[Any] | None = None
        self._connected = False
        self._stopped = False

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise NotConnectedError("Not connected; call start() first")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        """Return the selected database; raises if not connected."""
        if self._database is None:
            raise NotConnectedError("Not connected; call start() first")
        return self._database

    async def start(self, settings: MongoSettings | None = None) -> None:
        """Open the client, select the database and probe the server.

        Raises:
            MongoConfigurationError: URL or database name is missing.
            MongoConnectionError: The client cannot be built or the server
                does not answer the probe.
        """
        if settings is not None:
            self._settings = settings
        settings = self._settings

        logger.info("Configuring database connection...")
        if not settings.url:
            logger.error("Database lacks connection arguments.")
            raise MongoConfigurationError("Database connection URL is missing.")
        if not settings.database:
            logger.error("Database name is missing.")
            raise MongoConfigurationError("Database name is missing.")

        try:
            client = self._client_factory(settings)
        except MongoConnectionError:
            raise
        except Exception as e:
            logger.error("Database client is unavailable: %s", e)
            raise MongoConnectionError(str(e)) from e
        if client is None:
            raise MongoConnectionError("Database client is unavailable.")

        try:
            database = client.get_database(settings.database)
        except (InvalidName, TypeError) as e:
            logger.error("Database name is invalid: %s", e)
            client.close()
            raise MongoConnectionError(
                f"Database name {settings.database!r} is invalid."
            ) from e

        logger.info("Connecting to database...")
        try:
            await client.list_database_names()
        except (PyMongoError, OSError) as e:
            logger.error("Database could not connect: %s", e)
            client.close()
            raise MongoConnectionError("Database could not connect.") from e

        self._client = client
        self._database = database
        self._stopped = False
        self._connected = True
        logger.info("Database successfully connected.")

    def stop(self) -> None:
        """Drop the connection. Idempotent; safe if never started."""
        logger.info("Database disconnecting...")
        self._connected = False
        self._stopped = True
        client, self._client, self._database = self._client, None, None
        if client is not None:
            client.close()
        logger.info("Database disconnected.")

    async def wait_connected(self) -> None:
        """Block (bounded) until ``start`` has completed."""
        attempts = 0
        interval = self._settings.poll_interval
        while not self._connected:
            if self._stopped:
                raise NotConnectedError("The database has been disconnected.")
            if attempts >= self._settings.max_attempts:
                raise ConnectionTimeoutError(attempts, interval)
            await asyncio.sleep(interval)
            attempts += 1

    async def get_collection(self, name: str) -> AsyncIOMotorCollection[Any]:
        """Return the collection handle for ``name`` once connected."""
        await self.wait_connected()
        database = self._database
        if database is None:
            # stop() ran while this caller was being resumed
            raise NotConnectedError("The database has been disconnected.")
        try:
            collection = database.get_collection(name)
        except (InvalidName, TypeError) as e:
            raise CollectionUnavailableError(name) from e
        if collection is None:
            raise CollectionUnavailableError(name)
        return collection

    async def health_check(self) -> bool:
        """Ping the server; return True if reachable."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except Exception:  # noqa: BLE001
            return False
