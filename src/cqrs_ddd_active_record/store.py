"""
Composition root wiring host, registry and operations together.

Async use::

    store = DocumentStore(MongoSettings.from_env())
    await store.start()
    example = await store.ops.create(ExampleModel, name="Example")
    store.stop()

Blocking use::

    store = DocumentStore(settings)
    store.start_blocking()
    example = store.blocking().create(ExampleModel, name="Example")
    store.stop_blocking()
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .blocking import BlockingEntityOperations, EventLoopThread
from .connection import MongoHost
from .operations import EntityOperations
from .registry import GatewayRegistry

if TYPE_CHECKING:
    from .config import MongoSettings
    from .connection import ClientFactory


class DocumentStore:
    """Composition root for one database."""

    def __init__(
        self,
        settings: MongoSettings | None = None,
        *,
        client_factory: ClientFactory | None = None,
        host: MongoHost | None = None,
    ) -> None:
        self.host = host or MongoHost(settings, client_factory=client_factory)
        self.registry = GatewayRegistry(self.host)
        self.ops = EntityOperations(self.registry)
        self._runner: EventLoopThread | None = None
        self._blocking: BlockingEntityOperations | None = None
        self._lock = threading.Lock()

    async def start(self) -> None:
        await self.host.start()

    def stop(self) -> None:
        self.host.stop()

    def _loop_thread(self) -> EventLoopThread:
        with self._lock:
            if self._runner is None:
                self._runner = EventLoopThread()
            return self._runner

    def blocking(self) -> BlockingEntityOperations:
        """Blocking twin of :attr:`ops`, sharing the same registry."""
        runner = self._loop_thread()
        with self._lock:
            if self._blocking is None:
                self._blocking = BlockingEntityOperations(self.ops, runner)
            return self._blocking

    def start_blocking(self, *, cancel: threading.Event | None = None) -> None:
        """Start the host on the background loop used by :meth:`blocking`."""
        self._loop_thread().run(self.host.start(), cancel=cancel)

    def stop_blocking(self) -> None:
        """Stop the host and shut the background loop down."""
        self.host.stop()
        with self._lock:
            runner, self._runner, self._blocking = self._runner, None, None
        if runner is not None:
            runner.stop()
