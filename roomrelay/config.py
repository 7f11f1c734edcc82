"""Application configuration loaded from environment variables."""

from __future__ import annotations

import functools

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Room relay settings.

    Every field has a default, so the relay starts with an empty environment.
    Values can be overridden via environment variables (or a ``.env`` file).
    """

    # Bootstrap
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    cors_origins: str = "*"

    # Transport
    heartbeat_interval: float = 30.0
    outbox_size: int = 256

    # Identifiers
    connection_id_length: int = 8
    room_code_length: int = 6
    message_id_length: int = 10

    # Protocol limits
    max_name_length: int = 24
    max_chat_length: int = 2000

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@functools.lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance (singleton)."""
    return Settings()
