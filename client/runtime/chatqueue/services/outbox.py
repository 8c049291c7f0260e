"""
Chat Runtime - Outbox Service

Sends a chat message straight to the backend when possible and falls
back to the offline queue otherwise.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from chatqueue.models.chat import Message
from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.transport import MessageTransport

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 1000


class SendResult(BaseModel):
    status: str  # "sent" or "queued"
    message: Optional[Message] = None
    queued_id: Optional[str] = None


def normalize_text(text: str) -> str:
    """Trim and validate message text, raising ValueError when unusable."""
    text = (text or "").strip()
    if not text:
        raise ValueError("text is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValueError(f"Text too long (max {MAX_TEXT_LENGTH} chars)")
    return text


class OutboxService:
    """Send-or-queue front door used by the runtime routes."""

    def __init__(self, queue: OfflineQueue, transport: MessageTransport):
        self.queue = queue
        self.transport = transport

    async def send_message(self, user_id: int, text: str) -> SendResult:
        text = normalize_text(text)

        if self.queue.is_online:
            try:
                message = await self.transport.send(user_id, text)
                return SendResult(status="sent", message=message)
            except Exception as e:
                logger.warning(f"Direct send failed, queueing message: {e}")

        queued_id = await self.queue.enqueue(user_id, text)
        return SendResult(status="queued", queued_id=queued_id)
