"""
Chat Runtime - Configuration Management

Loads configuration from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Chat Runtime Offline Queue"
    DEBUG: bool = False
    HOST: str = "127.0.0.1"
    PORT: int = 8001

    # Chat backend (REST API)
    API_URL: str = "http://localhost:3000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Local key-value store (SQLite by default)
    DATABASE_URL: str = "sqlite:///./chat_runtime.db"

    # Offline queue
    QUEUE_KEY: str = "@message_queue"
    MAX_RETRIES: int = 3

    # Connectivity probe
    PROBE_ENABLED: bool = True
    PROBE_INTERVAL_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Security
    CORS_ORIGINS: List[str] = ["http://localhost:8081"]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
