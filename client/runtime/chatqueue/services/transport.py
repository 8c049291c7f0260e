"""
Chat Runtime - Chat Backend Client

REST client for the chat backend. ``send`` is the single capability the
offline queue needs to deliver one message.
"""

from typing import List, Optional, Protocol

import httpx

from chatqueue.models.chat import Message, User


class ApiError(Exception):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MessageTransport(Protocol):
    async def send(self, user_id: int, text: str) -> Message:
        ...


class ApiClient:
    """
    Client for the chat backend REST API.

    Pass ``client`` to reuse an existing httpx.AsyncClient (tests use a
    MockTransport-backed one); otherwise one is created and owned here.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def get_messages(self, limit: int = 50) -> List[Message]:
        response = await self._client.get(
            f"{self.api_url}/api/messages",
            params={"limit": limit},
        )
        if not response.is_success:
            raise ApiError("Failed to fetch messages", response.status_code)
        return [Message.model_validate(item) for item in response.json()]

    async def create_message(self, user_id: int, text: str) -> Message:
        response = await self._client.post(
            f"{self.api_url}/api/messages",
            json={"user_id": user_id, "text": text},
            headers={"Content-Type": "application/json"},
        )
        if not response.is_success:
            raise ApiError("Failed to create message", response.status_code)
        return Message.model_validate(response.json())

    async def create_user(self, name: str) -> User:
        response = await self._client.post(
            f"{self.api_url}/api/users",
            json={"name": name},
            headers={"Content-Type": "application/json"},
        )
        if not response.is_success:
            raise ApiError("Failed to create user", response.status_code)
        return User.model_validate(response.json())

    async def send(self, user_id: int, text: str) -> Message:
        return await self.create_message(user_id, text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
