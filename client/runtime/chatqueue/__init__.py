"""Chat Runtime offline delivery queue."""

from chatqueue.services.offline_queue import OfflineQueue

__all__ = ["OfflineQueue"]
