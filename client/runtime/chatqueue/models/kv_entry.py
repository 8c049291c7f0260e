"""
Chat Runtime - Key-Value Entry Model

SQLAlchemy model for the kv_store table.
Each row holds one serialized value (the offline queue, the signed-in user).
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from chatqueue.database import Base


class KeyValueEntry(Base):
    """
    Key-value table model.

    Writes replace the whole value; there is no partial update.
    """
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
