"""Configuration helpers for backend runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BackendSettings:
    database_url: str | None
    host: str
    port: int
    log_level: str = "INFO"
    strict_status_transitions: bool = False


def load_settings() -> BackendSettings:
    port_raw = os.getenv("RPGTRACKER_PORT", "8000")
    strict_raw = os.getenv("RPGTRACKER_STRICT_STATUS_TRANSITIONS", "false")
    return BackendSettings(
        database_url=os.getenv("RPGTRACKER_DATABASE_URL") or None,
        host=os.getenv("RPGTRACKER_HOST", "127.0.0.1"),
        port=int(port_raw),
        log_level=os.getenv("RPGTRACKER_LOG_LEVEL", "INFO").upper(),
        strict_status_transitions=strict_raw.strip().lower() in _TRUTHY,
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
