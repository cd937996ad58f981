from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock

from .events import utc_now
from .models import Address, MasterUpdate


@dataclass
class ProducerStatus:
    name: str
    alive: bool = False
    restarts: int = 0
    last_error: str | None = None
    updated_at: str = field(default_factory=utc_now)


class RuntimeState:
    """In-memory snapshot of what the controller has applied so far."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.master: Address | None = None
        self.last_source: str | None = None
        self.last_applied_at: str | None = None
        self.updates_applied = 0
        self.producers: dict[str, ProducerStatus] = {}

    def record_update(self, update: MasterUpdate) -> Address | None:
        """Store the applied update. Returns the previously applied address."""
        with self.lock:
            prev = self.master
            self.master = update.address
            self.last_source = update.source
            self.last_applied_at = utc_now()
            self.updates_applied += 1
            return prev

    def current_master(self) -> Address | None:
        with self.lock:
            return self.master

    def set_producer(self, name: str, alive: bool, restarts: int | None = None, error: str | None = None) -> None:
        with self.lock:
            st = self.producers.setdefault(name, ProducerStatus(name=name))
            st.alive = alive
            if restarts is not None:
                st.restarts = restarts
            if error is not None:
                st.last_error = error
            st.updated_at = utc_now()

    def list_producers(self) -> list[ProducerStatus]:
        with self.lock:
            return [ProducerStatus(**vars(p)) for p in self.producers.values()]

    def snapshot(self) -> dict[str, object]:
        with self.lock:
            return {
                "master": self.master,
                "source": self.last_source,
                "applied_at": self.last_applied_at,
                "updates_applied": self.updates_applied,
            }
