import asyncio

import pytest
from bson import ObjectId

from server.utils import itinerary_repository


class FakeCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, key, direction):
        self.docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    def limit(self, n):
        self.docs = self.docs[:n]
        return self

    def __aiter__(self):
        self._it = iter(self.docs)
        return self

    async def __anext__(self):
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration


class FakeResult:
    def __init__(self, inserted_id=None, deleted_count=0):
        self.inserted_id = inserted_id
        self.deleted_count = deleted_count


class FakeCollection:
    def __init__(self):
        self.docs = {}

    async def insert_one(self, doc):
        oid = ObjectId()
        self.docs[oid] = dict(doc, _id=oid)
        return FakeResult(inserted_id=oid)

    async def find_one(self, query):
        return self.docs.get(query["_id"])

    def find(self, query):
        return FakeCursor(d for d in self.docs.values() if d["user_id"] == query["user_id"])

    async def delete_one(self, query):
        return FakeResult(deleted_count=1 if self.docs.pop(query["_id"], None) else 0)


class FakeDb:
    def __init__(self):
        self.itineraries = FakeCollection()


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDb()
    monkeypatch.setattr(itinerary_repository, "get_db", lambda: db)
    return db


def test_save_then_get(fake_db, itinerary):
    async def run():
        new_id = await itinerary_repository.save_itinerary("user-1", itinerary)
        return new_id, await itinerary_repository.get_itinerary(new_id)

    new_id, record = asyncio.run(run())

    assert record["id"] == new_id
    assert "_id" not in record
    assert record["user_id"] == "user-1"
    assert record["destination"] == "Peru"
    assert record["companions"] == "couple"
    assert record["itinerary_data"]["dayPlans"][0]["day"] == 1
    assert record["itinerary_data"]["totalCost"] == 1800
    assert record["created_at"].tzinfo is not None


def test_get_with_malformed_id_is_none(fake_db):
    assert asyncio.run(itinerary_repository.get_itinerary("not-an-object-id")) is None


def test_get_unknown_id_is_none(fake_db):
    assert asyncio.run(itinerary_repository.get_itinerary(str(ObjectId()))) is None


def test_list_for_user_only_returns_their_rows(fake_db, itinerary):
    async def run():
        await itinerary_repository.save_itinerary("user-1", itinerary)
        await itinerary_repository.save_itinerary("user-2", itinerary)
        await itinerary_repository.save_itinerary("user-1", itinerary)
        return await itinerary_repository.list_itineraries_for_user("user-1")

    rows = asyncio.run(run())
    assert len(rows) == 2
    assert {r["user_id"] for r in rows} == {"user-1"}


def test_delete(fake_db, itinerary):
    async def run():
        new_id = await itinerary_repository.save_itinerary("user-1", itinerary)
        first = await itinerary_repository.delete_itinerary(new_id)
        second = await itinerary_repository.delete_itinerary(new_id)
        return first, second

    assert asyncio.run(run()) == (True, False)
