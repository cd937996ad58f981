from __future__ import annotations

from collections import deque
from threading import Condition, Event

from .events import log_event
from .models import MasterUpdate

POLICY_BLOCK = "block"
POLICY_DROP_OLDEST = "drop_oldest"
POLICIES = {POLICY_BLOCK, POLICY_DROP_OLDEST}


class UpdateChannel:
    """Bounded multi-producer / single-consumer queue of master updates.

    FIFO for each producer; nothing is promised about interleaving between
    producers. When full, `block` makes the producer wait for room (or for
    cancellation) and `drop_oldest` discards the oldest queued update.
    All checks and mutations happen under one condition, so an update is
    only dropped when the channel is really full.
    """

    def __init__(self, maxsize: int = 1024, policy: str = POLICY_BLOCK, stop: Event | None = None):
        if policy not in POLICIES:
            raise ValueError(f"unknown overflow policy {policy!r}; expected one of {sorted(POLICIES)}")
        self.maxsize = max(1, int(maxsize))
        self.policy = policy
        self.stop = stop or Event()
        self._items: deque[MasterUpdate] = deque()
        self._cond = Condition()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        with self._cond:
            return self._dropped

    def qsize(self) -> int:
        with self._cond:
            return len(self._items)

    def publish(self, update: MasterUpdate, poll_s: float = 0.5) -> bool:
        """Enqueue an update. Returns False if cancelled before it was queued."""
        old: MasterUpdate | None = None
        with self._cond:
            if self.policy == POLICY_DROP_OLDEST:
                if len(self._items) >= self.maxsize:
                    old = self._items.popleft()
                    self._dropped += 1
            else:
                while len(self._items) >= self.maxsize:
                    if self.stop.is_set():
                        return False
                    self._cond.wait(poll_s)
            self._items.append(update)
            self._cond.notify_all()
        if old is not None:
            log_event("WARN", f"Update channel full; dropped {old.source} update for {old.address}")
        return True

    def receive(self, timeout: float | None = None) -> MasterUpdate | None:
        """Next update in arrival order, or None if nothing arrived in time."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._items, timeout):
                return None
            update = self._items.popleft()
            self._cond.notify_all()
            return update
