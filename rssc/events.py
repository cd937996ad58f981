from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from .settings import settings

logger = logging.getLogger("rssc")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_lock = Lock()
_events: deque[dict[str, Any]] = deque(maxlen=max(1, settings.event_buffer))
_next_id = 1


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def log_event(level: str, message: str, master: str | None = None) -> None:
    """Record an event in the in-memory log and emit it on the `rssc` logger."""
    global _next_id
    level = level.upper()
    with _lock:
        _events.append({"id": _next_id, "ts": utc_now(), "level": level, "master": master, "message": message})
        _next_id += 1
    if master:
        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s", master, message)
    else:
        logger.log(_LEVELS.get(level, logging.INFO), "%s", message)


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with _lock:
        rows = list(_events)
    rows.reverse()
    return rows[: max(0, limit)]


def clear_events() -> None:
    with _lock:
        _events.clear()
