from __future__ import annotations

from threading import Event, Thread
from typing import Callable

import redis

from .backoff import with_backoff
from .channel import UpdateChannel
from .events import log_event
from .models import Address
from .sentinel import connect as sentinel_connect
from .settings import Settings, settings as default_settings

ConnectFn = Callable[..., redis.Redis]


class Producer:
    """A detection loop on its own daemon thread, feeding the update channel.

    Each producer owns its Sentinel connection. A crash (any exception
    escaping `_loop`) is logged and leaves the thread dead so the reconciler
    can decide whether to restart it.
    """

    name = "producer"

    def __init__(
        self,
        sentinel: Address,
        master_name: str,
        channel: UpdateChannel,
        stop: Event,
        cfg: Settings = default_settings,
        connect: ConnectFn = sentinel_connect,
    ):
        self.sentinel = sentinel
        self.master_name = master_name
        self.channel = channel
        self.stop = stop
        self.cfg = cfg
        self._connect_fn = connect
        self._thr: Thread | None = None
        self.last_error: BaseException | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._thr = Thread(target=self._run, name=f"rssc-{self.name}", daemon=True)
        self._thr.start()

    def is_alive(self) -> bool:
        return bool(self._thr and self._thr.is_alive())

    def join(self, timeout: float | None = None) -> None:
        if self._thr:
            self._thr.join(timeout)

    def _run(self) -> None:
        log_event("INFO", f"{self.name} started", master=self.master_name)
        try:
            self._loop()
        except Exception as e:
            self.last_error = e
            log_event("ERROR", f"{self.name} crashed: {type(e).__name__}: {e}", master=self.master_name)
            return
        log_event("INFO", f"{self.name} stopped", master=self.master_name)

    def _loop(self) -> None:
        raise NotImplementedError

    def _connect(self) -> redis.Redis:
        """Connect to Sentinel, backing off between failures until cancelled."""
        return with_backoff(
            lambda: self._connect_fn(self.sentinel, self.cfg),
            self.stop,
            self.cfg,
            unit=f"{self.name} connect",
            master=self.master_name,
        )
