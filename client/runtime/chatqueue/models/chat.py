"""
Chat Runtime - Backend Payload Models

Shapes returned by the chat backend REST API.
"""

from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    id: int
    name: str


class Message(BaseModel):
    id: int
    user_id: int
    text: str
    created_at: str
    user_name: Optional[str] = None
