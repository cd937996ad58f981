from __future__ import annotations

import socket
from typing import Protocol

import httpx

from .events import log_event
from .models import Address


class Materializer(Protocol):
    """Applies a master address to whatever depends on it.

    Called synchronously by the reconciler for every update. Implementations
    handle their own failures; nothing they raise is retried.
    """

    def materialize(self, address: Address) -> None: ...


def resolve(address: Address) -> list[str]:
    """Resolve an address to `ip:port` strings (TCP, deduplicated, stable order)."""
    infos = socket.getaddrinfo(address.host, address.port, type=socket.SOCK_STREAM)
    out: list[str] = []
    for family, _, _, _, sockaddr in infos:
        ip, port = sockaddr[0], sockaddr[1]
        rendered = f"[{ip}]:{port}" if family == socket.AF_INET6 else f"{ip}:{port}"
        if rendered not in out:
            out.append(rendered)
    return out


class ResolvingMaterializer:
    """Resolves the master address and logs every socket address it maps to."""

    def materialize(self, address: Address) -> None:
        try:
            resolved = resolve(address)
        except OSError as e:
            log_event("ERROR", f"Failed to resolve {address}: {e}")
            return
        for addr in resolved:
            log_event("INFO", f"Resolved: {addr}")


class WebhookMaterializer:
    """Resolves the address and POSTs it as JSON to a registration endpoint.

    Payload: {"host": ..., "port": ..., "resolved": ["ip:port", ...]}.
    """

    def __init__(self, url: str, timeout_s: float = 5.0, client: httpx.Client | None = None):
        self.url = url
        self._client = client or httpx.Client(timeout=timeout_s, follow_redirects=False)

    def materialize(self, address: Address) -> None:
        try:
            resolved = resolve(address)
        except OSError as e:
            log_event("ERROR", f"Failed to resolve {address}: {e}")
            resolved = []
        payload = {"host": address.host, "port": address.port, "resolved": resolved}
        try:
            resp = self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            log_event("ERROR", f"Webhook {self.url} failed: {type(e).__name__}: {e}")
            return
        if resp.status_code >= 400:
            log_event("ERROR", f"Webhook {self.url} returned HTTP {resp.status_code}")
            return
        log_event("INFO", f"Registered {address} via webhook ({len(resolved)} resolved)")

    def close(self) -> None:
        self._client.close()
