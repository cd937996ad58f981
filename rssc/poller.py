from __future__ import annotations

from .errors import SentinelError, TransportError
from .events import log_event
from .models import SOURCE_POLL, MasterUpdate
from .producer import Producer
from .query import query_master_address


class Poller(Producer):
    """Asks Sentinel for the master address every `poll_interval_s` seconds."""

    name = "poller"

    def __init__(self, *args, poll_interval_s: float, **kwargs):
        super().__init__(*args, **kwargs)
        self.poll_interval_s = max(0.0, float(poll_interval_s))

    def _loop(self) -> None:
        while not self.stop.is_set():
            try:
                conn = self._connect()
            except TransportError:
                # Only raised once cancelled; the backoff policy logged it.
                continue
            try:
                addr = query_master_address(conn, self.master_name)
            except SentinelError as e:
                log_event("ERROR", f"Failed to get master: {e}", master=self.master_name)
            else:
                self.channel.publish(MasterUpdate(address=addr, source=SOURCE_POLL))
            finally:
                conn.close()
            self.stop.wait(self.poll_interval_s)
