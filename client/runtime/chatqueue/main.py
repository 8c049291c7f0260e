"""
Chat Runtime - Offline Queue Service Main Entry Point

FastAPI application that owns the offline delivery queue: it wires the
key-value store, the chat backend client and the connectivity probe,
then drains queued messages whenever the backend becomes reachable.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from chatqueue.config import settings
from chatqueue.database import engine, SessionLocal
from chatqueue.logging_config import configure_logging
from chatqueue.models import Base
from chatqueue.routes import chat, health, queue
from chatqueue.services.network import ConnectivityProbe, NetworkMonitor
from chatqueue.services.offline_queue import OfflineQueue
from chatqueue.services.outbox import OutboxService
from chatqueue.services.storage import KeyValueStore, SqlKeyValueStore
from chatqueue.services.transport import ApiClient, MessageTransport

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[KeyValueStore] = None,
    transport: Optional[MessageTransport] = None,
    network: Optional[NetworkMonitor] = None,
    probe_enabled: bool = settings.PROBE_ENABLED,
    api_client: Optional[ApiClient] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to the SQL store, the REST client and a
    health-polling probe; tests pass their own. The queue delivers
    through ``transport`` when given, otherwise through the REST client.
    """
    app = FastAPI(
        title="Chat Runtime Offline Queue Service",
        description="Offline delivery queue for outbound chat messages",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(queue.router, prefix="/queue", tags=["queue"])
    app.include_router(chat.router, tags=["chat"])

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup"""
        logger.info("Chat Runtime offline queue service starting...")

        kv_store = store
        if kv_store is None:
            Base.metadata.create_all(bind=engine)
            kv_store = SqlKeyValueStore(SessionLocal)

        client = api_client
        if client is None:
            client = ApiClient(settings.API_URL, timeout=settings.REQUEST_TIMEOUT_SECONDS)
        message_transport = transport or client

        monitor = network or NetworkMonitor()
        offline_queue = OfflineQueue(kv_store, message_transport, monitor)
        await offline_queue.initialize()

        app.state.store = kv_store
        app.state.api_client = client
        app.state.network = monitor
        app.state.offline_queue = offline_queue
        app.state.outbox = OutboxService(offline_queue, message_transport)
        app.state.probe = None

        if probe_enabled:
            probe = ConnectivityProbe(
                monitor,
                settings.API_URL,
                interval=settings.PROBE_INTERVAL_SECONDS,
            )
            probe.start()
            app.state.probe = probe

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        logger.info("Chat Runtime offline queue service shutting down...")
        if getattr(app.state, "probe", None) is not None:
            await app.state.probe.stop()
        if getattr(app.state, "api_client", None) is not None:
            await app.state.api_client.aclose()

    return app


configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "chatqueue.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
