from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import redis

from .backoff import with_backoff
from .errors import MalformedNotification, TransportError
from .events import log_event
from .models import SOURCE_EVENT, Address, MasterUpdate, parse_port
from .producer import Producer
from .sentinel import SWITCH_MASTER_TOPIC


@dataclass(frozen=True)
class SwitchMaster:
    group: str
    old: Address
    new: Address


def parse_switch_master(payload: str | bytes) -> SwitchMaster:
    """Parse `<group> <old-host> <old-port> <new-host> <new-port>`.

    Extra trailing tokens are ignored.
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as err:
            raise MalformedNotification(f"payload is not UTF-8: {payload!r}") from err
    tokens = payload.split()
    if len(tokens) < 5:
        raise MalformedNotification(f"expected 5 tokens, got {len(tokens)}: {tokens!r}")
    group, old_host, old_port, new_host, new_port = tokens[:5]
    try:
        return SwitchMaster(
            group=group,
            old=Address(old_host, parse_port(old_port)),
            new=Address(new_host, parse_port(new_port)),
        )
    except ValueError as err:
        raise MalformedNotification(f"{err} in {payload!r}") from err


class EventSubscriber(Producer):
    """Listens on `+switch-master` and publishes failovers of our group."""

    name = "subscriber"

    def handle_message(self, payload: Any) -> Address | None:
        """Publish the new master if the payload announces our group."""
        try:
            event = parse_switch_master(payload)
        except MalformedNotification as e:
            log_event("ERROR", f"Received invalid switch-master event: {e}", master=self.master_name)
            return None
        if event.group != self.master_name:
            log_event("INFO", f"Master changed for {event.group}, not tracked here", master=self.master_name)
            return None
        log_event("INFO", f"Sentinel announced failover {event.old} -> {event.new}", master=self.master_name)
        self.channel.publish(MasterUpdate(address=event.new, source=SOURCE_EVENT))
        return event.new

    def _subscribe(self) -> tuple[redis.Redis, Any]:
        conn = self._connect_fn(self.sentinel, self.cfg, decode_responses=False)
        pubsub = conn.pubsub(ignore_subscribe_messages=True)
        try:
            pubsub.subscribe(SWITCH_MASTER_TOPIC)
        except redis.RedisError as err:
            pubsub.close()
            conn.close()
            raise TransportError(f"Failed to subscribe to topic {SWITCH_MASTER_TOPIC}: {err}") from err
        return conn, pubsub

    def _loop(self) -> None:
        while not self.stop.is_set():
            try:
                conn, pubsub = with_backoff(
                    self._subscribe, self.stop, self.cfg, unit=f"{self.name} subscribe", master=self.master_name
                )
            except TransportError:
                continue
            log_event("INFO", f"Subscribed to {SWITCH_MASTER_TOPIC}", master=self.master_name)
            try:
                while not self.stop.is_set():
                    message = pubsub.get_message(timeout=self.cfg.listen_timeout_s)
                    if message is None or message.get("type") != "message":
                        continue
                    self.handle_message(message["data"])
            except redis.RedisError as e:
                log_event("ERROR", f"Lost subscription to {SWITCH_MASTER_TOPIC}: {e}", master=self.master_name)
            finally:
                pubsub.close()
                conn.close()

