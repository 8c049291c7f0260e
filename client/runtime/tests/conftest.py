"""Shared fixtures for the offline queue tests."""

from typing import Dict, List, Tuple

import pytest

from chatqueue.models.chat import Message
from chatqueue.services.network import NetworkMonitor
from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.storage import InMemoryKeyValueStore


class FakeTransport:
    """Records sends; texts listed in ``failures`` fail that many times."""

    def __init__(self) -> None:
        self.calls: List[Tuple[int, str]] = []
        self.failures: Dict[str, int] = {}
        self.always_fail = False
        self._next_id = 1

    async def send(self, user_id: int, text: str) -> Message:
        self.calls.append((user_id, text))
        if self.always_fail:
            raise ConnectionError("network unreachable")
        remaining = self.failures.get(text, 0)
        if remaining:
            self.failures[text] = remaining - 1
            raise ConnectionError(f"send failed for {text}")
        message = Message(
            id=self._next_id,
            user_id=user_id,
            text=text,
            created_at="2024-01-01T00:00:00Z",
            user_name="alice",
        )
        self._next_id += 1
        return message


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def network() -> NetworkMonitor:
    return NetworkMonitor()


@pytest.fixture
def queue(store, transport, network) -> OfflineQueue:
    return OfflineQueue(store, transport, network, queue_key="@message_queue", max_retries=3)
