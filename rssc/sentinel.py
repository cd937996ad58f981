from __future__ import annotations

import redis

from .errors import TransportError
from .models import Address
from .settings import Settings, settings as default_settings

SWITCH_MASTER_TOPIC = "+switch-master"


def connect(endpoint: Address, cfg: Settings = default_settings, decode_responses: bool = True) -> redis.Redis:
    """Open a fresh, verified connection to one Sentinel instance.

    Pub/sub listeners pass `decode_responses=False` and decode payloads
    themselves, so a non-UTF-8 message cannot break the read loop.
    """
    conn = redis.Redis(
        host=endpoint.host,
        port=endpoint.port,
        password=cfg.sentinel_password,
        socket_connect_timeout=cfg.connect_timeout_s,
        socket_timeout=cfg.socket_timeout_s,
        decode_responses=decode_responses,
    )
    try:
        conn.ping()
    except redis.RedisError as err:
        conn.close()
        raise TransportError(f"cannot connect to sentinel {endpoint}: {err}") from err
    return conn
