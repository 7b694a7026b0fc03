"""Unit tests for BsonCollection[T]."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from cqrs_ddd_active_record import BsonCollection, BsonEntity, EntityState


class ExampleModel(BsonEntity):
    name: str = ""
    rank: int = 0


@pytest.fixture
def gateway(host):
    return BsonCollection(host, ExampleModel)


@pytest.fixture
def raw(host):
    """Direct access to the backing mongomock collection."""
    return host.database.get_collection("Example")


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_assigns_id(self, gateway, raw):
        entity = ExampleModel(name="Example")

        await gateway.insert(entity)

        assert isinstance(entity.id, ObjectId)
        doc = await raw.find_one({"_id": entity.id})
        assert doc["name"] == "Example"

    @pytest.mark.asyncio
    async def test_insert_many(self, gateway):
        batch = [ExampleModel(name="a"), ExampleModel(name="b")]

        await gateway.insert_many(batch)

        assert all(e.id is not None for e in batch)
        assert await gateway.count() == 2

    @pytest.mark.asyncio
    async def test_insert_many_empty(self, gateway):
        await gateway.insert_many([])

        assert await gateway.count() == 0

    @pytest.mark.asyncio
    async def test_insert_or_update_inserts_new(self, gateway):
        entity = ExampleModel(name="Example")

        assert await gateway.insert_or_update(entity) is True
        assert entity.id is not None

    @pytest.mark.asyncio
    async def test_insert_or_update_replaces_existing(self, gateway):
        entity = ExampleModel(name="Example")
        await gateway.insert(entity)
        entity.name = "Example2"

        assert await gateway.insert_or_update(entity) is True
        assert (await gateway.find_one({"_id": entity.id})).name == "Example2"
        assert await gateway.count() == 1

    @pytest.mark.asyncio
    async def test_replace_of_missing_document(self, gateway):
        """A replace matching nothing reports False and inserts nothing."""
        entity = ExampleModel(id=ObjectId(), name="ghost")

        assert await gateway.insert_or_update(entity) is False
        assert await gateway.count() == 0

    @pytest.mark.asyncio
    async def test_update_by_filter(self, gateway):
        entity = ExampleModel(name="Example")
        await gateway.insert(entity)
        entity.rank = 5

        assert await gateway.update(entity, {"name": "Example"}) is True
        assert (await gateway.find_one({"name": "Example"})).rank == 5

    @pytest.mark.asyncio
    async def test_update_without_id_or_filter(self, gateway):
        assert await gateway.update(ExampleModel(name="x")) is False

    @pytest.mark.asyncio
    async def test_modify_sets_one_field(self, gateway):
        entity = ExampleModel(name="Example", rank=1)
        await gateway.insert(entity)

        assert await gateway.modify(entity.id, {"$set": {"rank": 2}}) is True

        stored = await gateway.find_one({"_id": entity.id})
        assert stored.rank == 2
        assert stored.name == "Example"

    @pytest.mark.asyncio
    async def test_delete(self, gateway):
        entity = ExampleModel(name="Example")
        await gateway.insert(entity)

        assert await gateway.delete(entity) is True
        assert await gateway.count() == 0

    @pytest.mark.asyncio
    async def test_delete_without_id(self, gateway):
        assert await gateway.delete(ExampleModel()) is False

    @pytest.mark.asyncio
    async def test_delete_one(self, gateway):
        await gateway.insert_many([ExampleModel(name="a"), ExampleModel(name="a")])

        assert await gateway.delete_one({"name": "a"}) is True
        assert await gateway.count({"name": "a"}) == 1

    @pytest.mark.asyncio
    async def test_delete_many_counts(self, gateway):
        await gateway.insert_many([ExampleModel(name="Example") for _ in range(3)])

        assert await gateway.delete_many({"name": "Example"}) == 3
        assert await gateway.delete_many({"name": "Example"}) == 0

    @pytest.mark.asyncio
    async def test_delete_many_unacknowledged(self):
        coll = MagicMock()
        coll.delete_many = AsyncMock(return_value=MagicMock(acknowledged=False))
        host = MagicMock()
        host.get_collection = AsyncMock(return_value=coll)

        gateway = BsonCollection(host, ExampleModel)

        assert await gateway.delete_many({"name": "Example"}) == -1


class TestReads:
    @pytest.mark.asyncio
    async def test_find_one_is_ready(self, gateway):
        await gateway.insert(ExampleModel(name="Example"))

        found = await gateway.find_one({"name": "Example"})

        assert found.state is EntityState.READY
        assert found.name == "Example"

    @pytest.mark.asyncio
    async def test_find_one_missing(self, gateway):
        assert await gateway.find_one({"name": "nope"}) is None

    @pytest.mark.asyncio
    async def test_find_many_filter_sort_limit(self, gateway):
        await gateway.insert_many(
            [ExampleModel(name=n, rank=r) for n, r in [("a", 3), ("b", 1), ("c", 2)]]
        )

        found = await gateway.find_many(None, sort=["-rank"], limit=2).to_list()

        assert [e.name for e in found] == ["a", "c"]
        assert all(e.state is EntityState.READY for e in found)

    @pytest.mark.asyncio
    async def test_find_many_is_lazy(self, host):
        """No collection is requested until the stream is iterated."""
        host.get_collection = AsyncMock(wraps=host.get_collection)
        gateway = BsonCollection(host, ExampleModel)

        stream = gateway.find_many({"name": "x"})

        host.get_collection.assert_not_called()
        assert await stream.to_list() == []
        host.get_collection.assert_awaited_once_with("Example")

    @pytest.mark.asyncio
    async def test_count_empty_collection(self, gateway):
        assert await gateway.count() == 0
        assert await gateway.count({"name": "x"}) == 0

    def test_explicit_collection_name(self, host):
        assert BsonCollection(host, ExampleModel, name="things").name == "things"
