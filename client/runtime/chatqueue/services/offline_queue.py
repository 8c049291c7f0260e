"""
Chat Runtime - Offline Delivery Queue

Stores outbound chat messages while the network is down (or a send
fails) and delivers them once connectivity comes back.
"""

import json
import logging
from typing import Callable, List, Optional

from chatqueue.config import settings
from chatqueue.models.queued_message import QueuedMessage, generate_message_id
from chatqueue.services.network import NetworkMonitor
from chatqueue.services.storage import KeyValueStore
from chatqueue.services.transport import MessageTransport

logger = logging.getLogger(__name__)

QueueListener = Callable[[List[QueuedMessage]], None]
DropListener = Callable[[QueuedMessage], None]


class OfflineQueue:
    """
    Persistent queue of messages waiting for delivery.

    Every mutation is saved to the store before subscribers hear about
    it. Storage and delivery failures are logged, never raised: the
    in-memory queue stays authoritative until the next successful save.

    A pass over the queue works on a snapshot taken when it starts, so
    messages enqueued mid-pass wait for the next pass. Each entry gets
    ``max_retries`` delivery attempts before it is dropped.
    """

    def __init__(
        self,
        store: KeyValueStore,
        transport: MessageTransport,
        network: Optional[NetworkMonitor] = None,
        queue_key: str = settings.QUEUE_KEY,
        max_retries: int = settings.MAX_RETRIES,
    ):
        self.store = store
        self.transport = transport
        self.network = network
        self.queue_key = queue_key
        self.max_retries = max_retries
        self.is_online = True
        self._queue: List[QueuedMessage] = []
        self._listeners: List[QueueListener] = []
        self._drop_listeners: List[DropListener] = []
        self._initialized = False
        self._processing = False
        self._unsubscribe_network: Optional[Callable[[], None]] = None

    async def initialize(self) -> None:
        """Load persisted messages and start listening for network changes."""
        if self._initialized:
            logger.warning("Offline queue already initialized")
            return
        self._initialized = True

        await self._load_queue()
        self._notify_listeners()

        if self.network is not None:
            self._unsubscribe_network = self.network.add_listener(
                self._on_network_change
            )

    async def _on_network_change(self, connected: Optional[bool]) -> None:
        was_offline = not self.is_online
        self.is_online = bool(connected)

        if was_offline and self.is_online:
            logger.info("Back online! Processing queued messages...")
            await self.process_queue()

    async def _load_queue(self) -> None:
        try:
            stored = await self.store.get_item(self.queue_key)
            if not stored:
                return
            loaded = json.loads(stored)
            if not isinstance(loaded, list):
                raise ValueError(f"expected a JSON array, got {type(loaded).__name__}")
        except Exception:
            logger.exception("Failed to load message queue")
            return

        seen = set()
        queue = []
        for index, item in enumerate(loaded):
            try:
                message = QueuedMessage.model_validate(item)
            except ValueError as e:
                logger.warning(f"Skipping unreadable queued message at position {index}: {e}")
                continue
            if message.id in seen:
                logger.warning(f"Skipping duplicate queued message {message.id}")
                continue
            if message.retry_count >= self.max_retries:
                logger.warning(
                    f"Skipping queued message {message.id} that already used "
                    f"{message.retry_count} retries"
                )
                continue
            seen.add(message.id)
            queue.append(message)
        self._queue = queue

    async def _save_queue(self) -> None:
        try:
            payload = json.dumps([m.to_json_dict() for m in self._queue])
            await self.store.set_item(self.queue_key, payload)
        except Exception:
            logger.exception("Failed to save message queue")

    def _new_id(self) -> str:
        existing = {m.id for m in self._queue}
        message_id = generate_message_id()
        while message_id in existing:
            message_id = generate_message_id()
        return message_id

    async def enqueue(self, user_id: int, text: str) -> str:
        """Add a message to the end of the queue and return its local id."""
        message = QueuedMessage(id=self._new_id(), user_id=user_id, text=text)

        self._queue.append(message)
        await self._save_queue()
        self._notify_listeners()

        logger.debug(f"Queued message {message.id} for user {user_id}")
        return message.id

    async def dequeue(self, message_id: str) -> None:
        """Remove a message from the queue; unknown ids are ignored."""
        self._queue = [m for m in self._queue if m.id != message_id]
        await self._save_queue()
        self._notify_listeners()

    def get_queue(self) -> List[QueuedMessage]:
        return [m.model_copy() for m in self._queue]

    def has_pending_messages(self) -> bool:
        return len(self._queue) > 0

    def _find(self, message_id: str) -> Optional[QueuedMessage]:
        for message in self._queue:
            if message.id == message_id:
                return message
        return None

    async def process_queue(self) -> bool:
        """
        Try to deliver every queued message, one at a time, in order.

        Delivered messages are removed right away. A failed message has
        its retry count bumped and is dropped once the count reaches
        ``max_retries``. Messages removed (dequeue, clear) after the pass
        started are not sent.

        Returns False without sending when the queue is empty or another
        pass is already running, True once a pass has run.
        """
        if not self._queue:
            return False
        if self._processing:
            logger.info("Queue pass already in progress, skipping")
            return False

        self._processing = True
        try:
            messages = self.get_queue()
            logger.info(f"Processing {len(messages)} queued messages...")

            for message in messages:
                if self._find(message.id) is None:
                    logger.info(f"Skipping queued message {message.id}, removed during pass")
                    continue
                try:
                    await self.transport.send(message.user_id, message.text)
                except Exception as e:
                    logger.warning(f"Failed to send queued message {message.id}: {e}")
                    await self._record_failure(message.id)
                    continue

                await self.dequeue(message.id)
                logger.info(f"Successfully sent queued message: {message.id}")
        finally:
            self._processing = False

        self._notify_listeners()
        return True

    async def _record_failure(self, message_id: str) -> None:
        live = self._find(message_id)
        if live is None:
            # Removed while the send was in flight
            return

        live.retry_count += 1
        if live.retry_count >= self.max_retries:
            logger.warning(
                f"Removing message {message_id} after {live.retry_count} failed retries"
            )
            dropped = live.model_copy()
            await self.dequeue(message_id)
            self._notify_dropped(dropped)
        else:
            await self._save_queue()

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        """Call ``listener`` with a queue snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_dropped(self, listener: DropListener) -> Callable[[], None]:
        """Call ``listener`` with each message dropped after its last retry."""
        self._drop_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._drop_listeners:
                self._drop_listeners.remove(listener)

        return unsubscribe

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.get_queue())
            except Exception:
                logger.exception("Queue listener failed")

    def _notify_dropped(self, message: QueuedMessage) -> None:
        for listener in list(self._drop_listeners):
            try:
                listener(message.model_copy())
            except Exception:
                logger.exception("Drop listener failed")

    async def clear(self) -> None:
        """Discard every queued message without sending it (e.g. on logout)."""
        self._queue = []
        try:
            await self.store.remove_item(self.queue_key)
        except Exception:
            logger.exception("Failed to remove persisted message queue")
        self._notify_listeners()
