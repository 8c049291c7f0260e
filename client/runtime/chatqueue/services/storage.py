"""
Chat Runtime - Persistent Key-Value Store

Durable string storage keyed by name. The offline queue lives under one
key as a JSON array; the signed-in user lives under ``user``.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from chatqueue.models.chat import User
from chatqueue.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)

USER_KEY = "user"


class KeyValueStore(ABC):
    """Async key-value storage contract."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is missing."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Replace the whole value stored under ``key``."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete ``key``; deleting a missing key is not an error."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    """
    Store backed by the kv_store table.

    Each call opens its own session and commits before returning, so a
    value is durable once ``set_item`` completes.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def get_item(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry is not None else None
        finally:
            db.close()

    async def set_item(self, key: str, value: str) -> None:
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def remove_item(self, key: str) -> None:
        db = self.session_factory()
        try:
            (
                db.query(KeyValueEntry)
                .filter(KeyValueEntry.key == key)
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


async def save_user(store: KeyValueStore, user: User) -> None:
    await store.set_item(USER_KEY, user.model_dump_json())


async def load_user(store: KeyValueStore) -> Optional[User]:
    """Return the signed-in user, or None if nobody is signed in."""
    stored = await store.get_item(USER_KEY)
    if not stored:
        return None
    try:
        return User.model_validate(json.loads(stored))
    except ValueError as e:
        logger.error(f"Discarding unreadable stored user: {e}")
        return None


async def clear_user(store: KeyValueStore) -> None:
    await store.remove_item(USER_KEY)
