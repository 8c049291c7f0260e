"""
Chat Runtime - Session and History Routes

Sign in (create the user on the backend and remember it locally), sign
out (forget the user and discard queued messages), and message history.
"""

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.storage import KeyValueStore, clear_user, load_user, save_user
from chatqueue.services.transport import ApiClient, ApiError

router = APIRouter()


class SignInRequest(BaseModel):
    name: str


def get_api_client(request: Request) -> ApiClient:
    return request.app.state.api_client


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_queue(request: Request) -> OfflineQueue:
    return request.app.state.offline_queue


def backend_error(e: Exception) -> HTTPException:
    if isinstance(e, ApiError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=503, detail=f"Chat backend unreachable: {e}")


@router.post("/session")
async def sign_in(
    body: SignInRequest,
    api_client: ApiClient = Depends(get_api_client),
    store: KeyValueStore = Depends(get_store),
):
    """Create the user on the backend and keep it as the signed-in user"""
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    try:
        user = await api_client.create_user(name)
    except (ApiError, httpx.HTTPError) as e:
        raise backend_error(e)
    await save_user(store, user)
    return {"user": user.model_dump()}


@router.get("/session")
async def current_session(store: KeyValueStore = Depends(get_store)):
    """Return the signed-in user, or null"""
    user = await load_user(store)
    return {"user": user.model_dump() if user else None}


@router.delete("/session")
async def sign_out(
    store: KeyValueStore = Depends(get_store),
    queue: OfflineQueue = Depends(get_queue),
):
    """Forget the signed-in user and discard unsent messages"""
    await clear_user(store)
    await queue.clear()
    return {"success": True}


@router.get("/messages")
async def message_history(
    limit: int = 50,
    api_client: ApiClient = Depends(get_api_client),
):
    """Fetch recent messages from the backend"""
    try:
        messages = await api_client.get_messages(limit)
    except (ApiError, httpx.HTTPError) as e:
        raise backend_error(e)
    return {"messages": [m.model_dump() for m in messages]}
