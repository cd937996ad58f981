from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Sentinel connection
    sentinel_password: str | None = os.getenv("RSSC_SENTINEL_PASSWORD")
    connect_timeout_s: float = _env_float("RSSC_CONNECT_TIMEOUT_S", 5.0)
    socket_timeout_s: float = _env_float("RSSC_SOCKET_TIMEOUT_S", 5.0)
    listen_timeout_s: float = _env_float("RSSC_LISTEN_TIMEOUT_S", 1.0)

    # Reconnect backoff
    backoff_initial_s: float = _env_float("RSSC_BACKOFF_INITIAL_S", 0.5)
    backoff_max_s: float = _env_float("RSSC_BACKOFF_MAX_S", 30.0)
    backoff_jitter_s: float = _env_float("RSSC_BACKOFF_JITTER_S", 1.0)

    # Update channel and supervision
    queue_max_size: int = _env_int("RSSC_QUEUE_MAX_SIZE", 1024)
    overflow_policy: str = os.getenv("RSSC_OVERFLOW_POLICY", "block")  # block|drop_oldest
    max_producer_restarts: int = _env_int("RSSC_MAX_PRODUCER_RESTARTS", 3)
    supervise_interval_s: float = _env_float("RSSC_SUPERVISE_INTERVAL_S", 1.0)

    # Logging
    event_buffer: int = _env_int("RSSC_EVENT_BUFFER", 500)
    log_level: str = os.getenv("RSSC_LOG_LEVEL", "INFO")

    # Status API (optional, 0 disables it)
    status_host: str = os.getenv("RSSC_STATUS_HOST", "127.0.0.1")
    status_port: int = _env_int("RSSC_STATUS_PORT", 0)

    # Webhook materializer (optional)
    webhook_url: str | None = os.getenv("RSSC_WEBHOOK_URL")
    webhook_timeout_s: float = _env_float("RSSC_WEBHOOK_TIMEOUT_S", 5.0)

    # Email alerting on master change (optional)
    enable_email: bool = _env_bool("RSSC_ENABLE_EMAIL", False)
    smtp_host: str = os.getenv("RSSC_SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = _env_int("RSSC_SMTP_PORT", 587)
    smtp_timeout_s: float = _env_float("RSSC_SMTP_TIMEOUT_S", 10.0)
    smtp_user: str | None = os.getenv("RSSC_SMTP_USER")
    smtp_password: str | None = os.getenv("RSSC_SMTP_PASSWORD")
    email_from: str | None = os.getenv("RSSC_EMAIL_FROM")
    email_to: str | None = os.getenv("RSSC_EMAIL_TO")


settings = Settings()
