"""
Chat Runtime - Network Status

NetworkMonitor fans connectivity changes out to listeners.
ConnectivityProbe feeds it by polling the backend health endpoint.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

NetworkListener = Callable[[Optional[bool]], Union[None, Awaitable[None]]]


class NetworkMonitor:
    """
    Observer for connected/disconnected signals.

    Listeners may be plain functions or coroutine functions; coroutine
    listeners are awaited in registration order.
    """

    def __init__(self) -> None:
        self._listeners: List[NetworkListener] = []
        self.is_connected: Optional[bool] = None

    def add_listener(self, listener: NetworkListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, connected: Optional[bool]) -> None:
        """Deliver a connectivity signal to every listener."""
        self.is_connected = connected
        for listener in list(self._listeners):
            try:
                result = listener(connected)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Network listener failed")


class ConnectivityProbe:
    """
    Polls ``<api_url>/health`` and publishes on every change.

    Any response below 500 counts as connected; transport errors count
    as disconnected.
    """

    def __init__(
        self,
        monitor: NetworkMonitor,
        api_url: str,
        interval: float = 5.0,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.monitor = monitor
        self.health_url = f"{api_url.rstrip('/')}/health"
        self.interval = interval
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._task: Optional[asyncio.Task] = None
        self._last: Optional[bool] = None

    async def check(self) -> bool:
        try:
            response = await self._client.get(self.health_url)
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.debug(f"Health probe failed: {e}")
            return False

    async def poll_once(self) -> bool:
        """Probe once, publishing when the result differs from the last one."""
        connected = await self.check()
        if connected != self._last:
            self._last = connected
            logger.info(f"Network is now {'online' if connected else 'offline'}")
            await self.monitor.publish(connected)
        return connected

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client:
            await self._client.aclose()
