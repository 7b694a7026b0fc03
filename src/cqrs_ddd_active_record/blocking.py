"""
Blocking twins of the async entity operations.

Coroutines are submitted to one long-lived event loop running in a background
thread (:class:`EventLoopThread`). Motor clients are bound to the loop they
first run on, so the host must be started through the same runner when the
blocking API is used (see :meth:`DocumentStore.start_blocking`).

Each blocking call accepts ``cancel``, a :class:`threading.Event`. Setting it
cancels the pending coroutine on the loop (aborting its I/O) and raises
:class:`OperationCancelledError` in the caller.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar

from .entity import BsonEntity
from .exceptions import OperationCancelledError
from .stream import to_model_dict

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Hashable

    from .fields import FieldRef
    from .model_dict import ModelDict
    from .operations import EntityOperations, Initializer
    from .query import Filter, Sort

T = TypeVar("T", bound=BsonEntity)
R = TypeVar("R")
K = TypeVar("K", bound="Hashable")

logger = logging.getLogger("cqrs_ddd.active_record.blocking")

CANCEL_POLL_INTERVAL = 0.05


class EventLoopThread:
    """A private event loop running forever in a daemon thread."""

    def __init__(self, name: str = "cqrs-ddd-active-record-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop thread. Idempotent."""
        with self._lock:
            if self.running:
                return
            loop = asyncio.new_event_loop()
            ready = threading.Event()

            def _run() -> None:
                asyncio.set_event_loop(loop)
                loop.call_soon(ready.set)
                loop.run_forever()

            thread = threading.Thread(target=_run, name=self._name, daemon=True)
            thread.start()
            ready.wait()
            self._loop, self._thread = loop, thread
            logger.debug("Started event loop thread %s", self._name)

    def stop(self) -> None:
        """Stop the loop and join the thread. Idempotent."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()
        logger.debug("Stopped event loop thread %s", self._name)

    def run(
        self,
        coro: Coroutine[Any, Any, R],
        *,
        cancel: threading.Event | None = None,
    ) -> R:
        """Run ``coro`` on the loop and block until it finishes.

        Raises:
            RuntimeError: Called from the loop thread itself.
            OperationCancelledError: ``cancel`` was set first.
        """
        if self._thread is threading.current_thread():
            coro.close()
            raise RuntimeError("Blocking calls cannot be made from the loop thread")
        self.start()
        assert self._loop is not None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        if cancel is not None:
            while not future.done():
                if cancel.is_set() and future.cancel():
                    raise OperationCancelledError("The operation was cancelled.")
                concurrent.futures.wait((future,), timeout=CANCEL_POLL_INTERVAL)
        try:
            return future.result()
        except concurrent.futures.CancelledError as e:
            raise OperationCancelledError("The operation was cancelled.") from e

    def __enter__(self) -> EventLoopThread:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


class BlockingEntityOperations:
    """Same contracts as :class:`EntityOperations`, blocking the caller.

    ``get_many`` and ``get_all`` return fully materialised lists.
    """

    def __init__(self, ops: EntityOperations, runner: EventLoopThread) -> None:
        self._ops = ops
        self._runner = runner

    def _run(
        self, coro: Coroutine[Any, Any, R], cancel: threading.Event | None
    ) -> R:
        return self._runner.run(coro, cancel=cancel)

    def create(
        self,
        model: type[T],
        initializer: Initializer | None = None,
        *,
        cancel: threading.Event | None = None,
        **values: Any,
    ) -> T:
        return self._run(self._ops.create(model, initializer, **values), cancel)

    def get(
        self,
        model: type[T],
        filter: Filter,  # noqa: A002
        *,
        cancel: threading.Event | None = None,
    ) -> T | None:
        return self._run(self._ops.get(model, filter), cancel)

    def get_first(
        self, model: type[T], *, cancel: threading.Event | None = None
    ) -> T | None:
        return self._run(self._ops.get_first(model), cancel)

    def get_many(
        self,
        model: type[T],
        filter: Filter = None,  # noqa: A002
        *,
        sort: Sort = None,
        limit: int | None = None,
        cancel: threading.Event | None = None,
    ) -> list[T]:
        stream = self._ops.get_many(model, filter, sort=sort, limit=limit)
        return self._run(stream.to_list(), cancel)

    def get_all(
        self,
        model: type[T],
        *,
        sort: Sort = None,
        cancel: threading.Event | None = None,
    ) -> list[T]:
        return self._run(self._ops.get_all(model, sort=sort).to_list(), cancel)

    def get_dict(
        self,
        model: type[T],
        key: Callable[[T], K],
        filter: Filter = None,  # noqa: A002
        *,
        on_miss: Callable[[K, T], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> ModelDict[K, T]:
        """Matches keyed by ``key(entity)`` in a :class:`ModelDict`."""
        stream = self._ops.get_many(model, filter)
        return self._run(to_model_dict(stream, key, model, on_miss=on_miss), cancel)

    def delete_many(
        self,
        model: type[T],
        filter: Filter,  # noqa: A002
        *,
        cancel: threading.Event | None = None,
    ) -> int:
        return self._run(self._ops.delete_many(model, filter), cancel)

    def get_count(
        self,
        model: type[T],
        filter: Filter = None,  # noqa: A002
        *,
        cancel: threading.Event | None = None,
    ) -> int:
        return self._run(self._ops.get_count(model, filter), cancel)

    def save(
        self,
        entity: T,
        field: FieldRef | str,
        value: Any,
        *,
        cancel: threading.Event | None = None,
    ) -> bool:
        return self._run(self._ops.save(entity, field, value), cancel)

    def update(self, entity: T, *, cancel: threading.Event | None = None) -> bool:
        return self._run(self._ops.update(entity), cancel)

    def delete(self, entity: T, *, cancel: threading.Event | None = None) -> bool:
        return self._run(self._ops.delete(entity), cancel)

    def create_if_absent(
        self,
        model: type[T],
        filter: Filter,  # noqa: A002
        initializer: Initializer | None = None,
        *,
        cancel: threading.Event | None = None,
        **values: Any,
    ) -> T:
        return self._run(
            self._ops.create_if_absent(model, filter, initializer, **values), cancel
        )

    def require(
        self,
        model: type[T],
        filter: Filter,  # noqa: A002
        *,
        cancel: threading.Event | None = None,
    ) -> T:
        return self._run(self._ops.require(model, filter), cancel)
