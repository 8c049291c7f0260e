"""
Chat Runtime - Queued Message Model

A chat message waiting to be delivered to the backend. The JSON shape
(camelCase keys) is what gets persisted under the queue key.
"""

import random
import time
import uuid

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_message_id() -> str:
    """Local id: creation time plus a random component."""
    return f"temp_{now_ms()}_{uuid.uuid4().hex[:8]}{random.randint(0, 999):03d}"


class QueuedMessage(BaseModel):
    """
    One pending outbound message.

    Only ``retry_count`` changes after creation.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_message_id, frozen=True)
    user_id: int = Field(alias="userId", frozen=True)
    text: str = Field(frozen=True)
    timestamp: int = Field(default_factory=now_ms, frozen=True)
    retry_count: int = Field(default=0, alias="retryCount", ge=0)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)
