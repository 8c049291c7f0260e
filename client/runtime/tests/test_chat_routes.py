"""Session and message history route tests."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chatqueue.main import create_app
from chatqueue.services.network import NetworkMonitor
from chatqueue.services.storage import InMemoryKeyValueStore
from chatqueue.services.transport import ApiClient

from conftest import FakeTransport

MESSAGE = {
    "id": 10,
    "user_id": 4,
    "text": "hello",
    "created_at": "2024-01-01T00:00:00Z",
    "user_name": "alice",
}


class Backend:
    """Stand-in chat backend behind an httpx MockTransport."""

    def __init__(self) -> None:
        self.down = False
        self.requests = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("backend down", request=request)
        if request.url.path == "/api/users":
            body = json.loads(request.content)
            return httpx.Response(201, json={"id": 4, "name": body["name"]})
        if request.url.path == "/api/messages" and request.method == "GET":
            return httpx.Response(200, json=[MESSAGE])
        return httpx.Response(404)


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(backend, store, fake_transport):
    api_client = ApiClient(
        "http://chat.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(backend.handle)),
    )
    app = create_app(
        store=store,
        transport=fake_transport,
        network=NetworkMonitor(),
        probe_enabled=False,
        api_client=api_client,
    )
    with TestClient(app) as test_client:
        yield test_client


def test_sign_in_creates_and_remembers_user(client) -> None:
    response = client.post("/session", json={"name": "  alice "})

    assert response.status_code == 200
    assert response.json() == {"user": {"id": 4, "name": "alice"}}
    assert client.get("/session").json() == {"user": {"id": 4, "name": "alice"}}


def test_sign_in_requires_name(client, backend) -> None:
    response = client.post("/session", json={"name": "  "})

    assert response.status_code == 400
    assert backend.requests == []


def test_sign_in_backend_down(client, backend) -> None:
    backend.down = True

    response = client.post("/session", json={"name": "alice"})

    assert response.status_code == 503
    assert client.get("/session").json() == {"user": None}


def test_sign_out_forgets_user_and_discards_queue(client, store, fake_transport) -> None:
    client.post("/session", json={"name": "alice"})
    fake_transport.always_fail = True
    client.post("/queue/messages", json={"user_id": 4, "text": "unsent"})
    assert client.get("/queue/status").json()["pending_messages"] == 1

    assert client.delete("/session").json() == {"success": True}

    assert client.get("/session").json() == {"user": None}
    assert client.get("/queue/").json() == {"messages": []}
    assert "@message_queue" not in store._items
    assert "user" not in store._items


def test_message_history(client, backend) -> None:
    response = client.get("/messages", params={"limit": 5})

    assert response.status_code == 200
    assert [m["text"] for m in response.json()["messages"]] == ["hello"]
    assert backend.requests[-1].url.params["limit"] == "5"


def test_message_history_backend_error(client, backend) -> None:
    backend.down = True
    assert client.get("/messages").status_code == 503
