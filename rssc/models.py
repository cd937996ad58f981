from __future__ import annotations

import time
from dataclasses import dataclass, field

SOURCE_INITIAL = "initial"
SOURCE_POLL = "poll"
SOURCE_EVENT = "event"


def parse_port(raw: str) -> int:
    """Parse an unsigned 16-bit port number; raise ValueError otherwise."""
    if not raw.isascii() or not raw.isdigit():
        raise ValueError(f"invalid port {raw!r}")
    port = int(raw)
    if port > 65535:
        raise ValueError(f"port out of range: {raw}")
    return port


@dataclass(frozen=True)
class Address:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> "Address":
        """Parse `host:port` (IPv6 hosts may be bracketed)."""
        host, sep, port = value.rpartition(":")
        if not sep or not host:
            raise ValueError(f"expected host:port, got {value!r}")
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        return cls(host=host, port=parse_port(port))


@dataclass(frozen=True)
class MasterUpdate:
    """One master observation on the update stream."""

    address: Address
    source: str  # initial|poll|event
    observed_at: float = field(default_factory=time.time)
