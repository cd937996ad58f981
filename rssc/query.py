from __future__ import annotations

from typing import Any

import redis

from .errors import InvalidResponse, TransportError
from .models import Address, parse_port


def parse_master_reply(reply: Any) -> Address:
    """Turn a `get-master-addr-by-name` reply into an Address.

    Sentinel answers with `[host, port]`, or nil when it does not know the
    group. Anything else is an InvalidResponse.
    """
    if not isinstance(reply, (list, tuple)) or len(reply) != 2:
        raise InvalidResponse(f"Response did not have exactly 2 elements: {reply!r}")
    host, port = (x.decode() if isinstance(x, bytes) else x for x in reply)
    if not isinstance(host, str) or not isinstance(port, str):
        raise InvalidResponse(f"Response elements are not strings: {reply!r}")
    try:
        return Address(host=host, port=parse_port(port))
    except ValueError as err:
        raise InvalidResponse(f"Port is invalid: {err}") from err


def query_master_address(conn: redis.Redis, master_name: str) -> Address:
    try:
        reply = conn.execute_command("SENTINEL", "get-master-addr-by-name", master_name)
    except redis.RedisError as err:
        raise TransportError(f"{type(err).__name__}: {err}") from err
    return parse_master_reply(reply)
