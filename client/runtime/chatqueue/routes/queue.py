"""
Chat Runtime - Offline Queue Routes

Local endpoints for inspecting and driving the offline delivery queue.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.outbox import OutboxService

router = APIRouter()
logger = logging.getLogger(__name__)


class SendMessageRequest(BaseModel):
    user_id: int
    text: str


def get_queue(request: Request) -> OfflineQueue:
    """Dependency for the process-wide offline queue"""
    return request.app.state.offline_queue


def get_outbox(request: Request) -> OutboxService:
    return request.app.state.outbox


def serialize(queue):
    return [m.to_json_dict() for m in queue]


@router.get("/")
async def list_queue(queue: OfflineQueue = Depends(get_queue)):
    """List messages waiting for delivery"""
    return {"messages": serialize(queue.get_queue())}


@router.get("/status")
async def queue_status(queue: OfflineQueue = Depends(get_queue)):
    """Get current queue depth and connectivity"""
    return {
        "pending_messages": len(queue.get_queue()),
        "has_pending": queue.has_pending_messages(),
        "is_online": queue.is_online,
        "max_retries": queue.max_retries,
    }


@router.post("/messages")
async def send_message(
    body: SendMessageRequest,
    outbox: OutboxService = Depends(get_outbox),
):
    """
    Send a message, queueing it when the backend cannot be reached.
    """
    try:
        result = await outbox.send_message(body.user_id, body.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return result.model_dump()


@router.delete("/messages/{message_id}")
async def remove_message(message_id: str, queue: OfflineQueue = Depends(get_queue)):
    """Drop one queued message without sending it"""
    await queue.dequeue(message_id)
    return {"success": True, "pending_messages": len(queue.get_queue())}


@router.post("/process")
async def process_queue(queue: OfflineQueue = Depends(get_queue)):
    """
    Manually trigger a delivery pass.

    Sends every queued message once, in order, and reports how many
    are still waiting afterwards. ``processed`` is 0 when no pass ran
    (empty queue, or a pass was already in progress).
    """
    try:
        before = len(queue.get_queue())
        ran = await queue.process_queue()
        return {
            "success": True,
            "ran": ran,
            "processed": before if ran else 0,
            "remaining": len(queue.get_queue()),
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/")
async def clear_queue(queue: OfflineQueue = Depends(get_queue)):
    """Discard all queued messages (use with caution)"""
    await queue.clear()
    return {"success": True}


async def stop_forwarder(task: asyncio.Task) -> None:
    """Cancel a forwarding task and collect its outcome."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("Queue websocket forwarder failed")


@router.websocket("/ws")
async def queue_updates(websocket: WebSocket):
    """Push the queue contents now and after every change."""
    queue: OfflineQueue = websocket.app.state.offline_queue
    await websocket.accept()

    updates: asyncio.Queue = asyncio.Queue()
    unsubscribe = queue.subscribe(updates.put_nowait)

    async def forward_updates():
        while True:
            snapshot = await updates.get()
            await websocket.send_json({"messages": serialize(snapshot)})

    await websocket.send_json({"messages": serialize(queue.get_queue())})
    sender = asyncio.create_task(forward_updates())
    try:
        # Incoming frames are ignored; reading only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Queue websocket client disconnected")
    finally:
        unsubscribe()
        await stop_forwarder(sender)
