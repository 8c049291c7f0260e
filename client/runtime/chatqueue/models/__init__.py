from chatqueue.database import Base
from chatqueue.models.chat import Message, User
from chatqueue.models.kv_entry import KeyValueEntry
from chatqueue.models.queued_message import QueuedMessage

__all__ = ["Base", "KeyValueEntry", "Message", "QueuedMessage", "User"]
