"""Key-value store tests."""

import pytest
from sqlalchemy.orm import sessionmaker

from chatqueue.database import Base, build_engine
from chatqueue.models.chat import User
from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.storage import (
    InMemoryKeyValueStore,
    SqlKeyValueStore,
    clear_user,
    load_user,
    save_user,
)


@pytest.fixture
def sql_store() -> SqlKeyValueStore:
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return SqlKeyValueStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


async def test_sql_store_missing_key_returns_none(sql_store) -> None:
    assert await sql_store.get_item("@message_queue") is None


async def test_sql_store_set_replaces_value(sql_store) -> None:
    await sql_store.set_item("k", "one")
    await sql_store.set_item("k", "two")
    assert await sql_store.get_item("k") == "two"


async def test_sql_store_remove_deletes_key(sql_store) -> None:
    await sql_store.set_item("k", "v")
    await sql_store.remove_item("k")
    await sql_store.remove_item("k")
    assert await sql_store.get_item("k") is None


async def test_queue_survives_restart_on_sql_store(sql_store) -> None:
    class NeverCalled:
        async def send(self, user_id, text):
            raise AssertionError("not expected")

    first = OfflineQueue(sql_store, NeverCalled(), queue_key="@message_queue")
    await first.initialize()
    await first.enqueue(3, "persist me")
    await first.enqueue(3, "and me")

    second = OfflineQueue(sql_store, NeverCalled(), queue_key="@message_queue")
    await second.initialize()

    assert second.get_queue() == first.get_queue()


async def test_user_helpers_round_trip() -> None:
    store = InMemoryKeyValueStore()
    assert await load_user(store) is None

    await save_user(store, User(id=5, name="alice"))
    assert await load_user(store) == User(id=5, name="alice")

    await clear_user(store)
    assert await load_user(store) is None


async def test_unreadable_user_is_discarded() -> None:
    store = InMemoryKeyValueStore()
    await store.set_item("user", '{"id": "not-a-number"}')
    assert await load_user(store) is None
