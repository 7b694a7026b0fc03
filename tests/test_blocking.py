"""Unit tests for the blocking facade and its event loop thread."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from cqrs_ddd_active_record import (
    BlockingEntityOperations,
    BsonEntity,
    EntityNotFoundError,
    EntityState,
    EventLoopThread,
    fields,
)
from cqrs_ddd_active_record.exceptions import OperationCancelledError


class ExampleModel(BsonEntity):
    name: str = ""
    rank: int = 0


@pytest.fixture
def runner():
    loop_thread = EventLoopThread()
    loop_thread.start()
    yield loop_thread
    loop_thread.stop()


@pytest.fixture
def blocking_ops(ops, runner):
    return BlockingEntityOperations(ops, runner)


class TestEventLoopThread:
    def test_run_returns_result(self, runner):
        async def answer():
            await asyncio.sleep(0)
            return 42

        assert runner.run(answer()) == 42

    def test_exceptions_propagate(self, runner):
        async def boom():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            runner.run(boom())

    def test_cancel_before_start(self, runner):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            runner.run(asyncio.sleep(5), cancel=cancel)

    def test_cancel_while_running(self, runner):
        cancel = threading.Event()
        finished = threading.Event()

        async def slow():
            await asyncio.sleep(5)
            finished.set()

        timer = threading.Timer(0.05, cancel.set)
        timer.start()
        started = time.monotonic()
        with pytest.raises(OperationCancelledError):
            runner.run(slow(), cancel=cancel)

        assert time.monotonic() - started < 2.0
        assert not finished.is_set()

    def test_unset_cancel_does_not_interfere(self, runner):
        async def value():
            await asyncio.sleep(0.01)
            return "done"

        assert runner.run(value(), cancel=threading.Event()) == "done"

    def test_reentrant_call_rejected(self, runner):
        async def nested():
            with pytest.raises(RuntimeError):
                runner.run(asyncio.sleep(0))
            return True

        assert runner.run(nested()) is True

    def test_start_and_stop_idempotent(self):
        loop_thread = EventLoopThread()
        loop_thread.start()
        loop_thread.start()
        assert loop_thread.running

        loop_thread.stop()
        loop_thread.stop()
        assert not loop_thread.running

    def test_context_manager(self):
        with EventLoopThread() as loop_thread:
            assert loop_thread.running
        assert not loop_thread.running


class TestBlockingEntityOperations:
    def test_create_get_save(self, blocking_ops):
        example = blocking_ops.create(ExampleModel, name="Example")

        assert example.state is EntityState.READY
        assert blocking_ops.save(example, fields(ExampleModel).name, "Example2")
        assert blocking_ops.get(ExampleModel, {"name": "Example2"}).id == example.id

    def test_get_many_returns_list(self, blocking_ops):
        for rank in (2, 1, 3):
            blocking_ops.create(ExampleModel, name="a", rank=rank)

        matches = blocking_ops.get_many(ExampleModel, {"name": "a"}, sort=["rank"])
        everything = blocking_ops.get_all(ExampleModel, sort=["-rank"])

        assert isinstance(matches, list)
        assert [e.rank for e in matches] == [1, 2, 3]
        assert [e.rank for e in everything] == [3, 2, 1]

    def test_get_dict(self, blocking_ops):
        blocking_ops.create(ExampleModel, name="a", rank=1)

        by_name = blocking_ops.get_dict(ExampleModel, lambda e: e.name)

        assert by_name["a"].rank == 1
        assert by_name["b"].state is EntityState.STATELESS

    def test_counts_and_deletes(self, blocking_ops):
        for _ in range(3):
            blocking_ops.create(ExampleModel, name="Example")

        assert blocking_ops.get_count(ExampleModel) == 3
        first = blocking_ops.get_first(ExampleModel)
        assert blocking_ops.delete(first) is True
        assert blocking_ops.delete(first) is False
        assert blocking_ops.delete_many(ExampleModel, {"name": "Example"}) == 2

    def test_update(self, blocking_ops):
        example = blocking_ops.create(ExampleModel, name="Example")
        example.rank = 3

        assert blocking_ops.update(example) is True
        assert blocking_ops.require(ExampleModel, {"rank": 3}).id == example.id

    def test_require_missing(self, blocking_ops):
        with pytest.raises(EntityNotFoundError):
            blocking_ops.require(ExampleModel, {"name": "nope"})

    def test_create_if_absent(self, blocking_ops):
        first = blocking_ops.create_if_absent(ExampleModel, {"name": "x"}, name="x")
        second = blocking_ops.create_if_absent(ExampleModel, {"name": "x"}, name="x")

        assert first.id == second.id

    def test_cancelled_call(self, blocking_ops):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            blocking_ops.get_count(ExampleModel, cancel=cancel)
