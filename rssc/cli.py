from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from threading import Event

from .api import create_app, serve_in_thread
from .channel import UpdateChannel
from .errors import ProducerFailure, SentinelError
from .events import log_event
from .materializer import Materializer, ResolvingMaterializer, WebhookMaterializer
from .models import SOURCE_INITIAL, Address, MasterUpdate
from .poller import Poller
from .query import query_master_address
from .reconciler import Reconciler
from .runtime import RuntimeState
from .sentinel import connect as sentinel_connect
from .settings import Settings, settings as default_settings
from .subscriber import EventSubscriber


def _endpoint(raw: str) -> Address:
    try:
        return Address.parse(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _interval(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"poll interval must be whole seconds, got {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError("poll interval must not be negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rssc", description="Redis Sentinel Service Controller")
    p.add_argument("sentinel", type=_endpoint, help="Sentinel address, host:port")
    p.add_argument("master_name", help="Master group name known to Sentinel")
    p.add_argument("poll_interval", type=_interval, help="Seconds between polls")
    return p


def build_materializer(cfg: Settings) -> Materializer:
    if cfg.webhook_url:
        return WebhookMaterializer(cfg.webhook_url, timeout_s=cfg.webhook_timeout_s)
    return ResolvingMaterializer()


def _install_signal_handlers(stop: Event) -> dict[int, object]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def _handler(signum, frame) -> None:
        log_event("INFO", f"Received {signal.Signals(signum).name}, shutting down")
        stop.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def main(
    argv: list[str] | None = None,
    cfg: Settings = default_settings,
    connect=sentinel_connect,
    materializer: Materializer | None = None,
    stop: Event | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    stop = stop or Event()
    try:
        channel = UpdateChannel(cfg.queue_max_size, cfg.overflow_policy, stop)
    except ValueError as e:
        log_event("ERROR", f"Invalid configuration: {e}")
        return 1

    try:
        conn = connect(args.sentinel, cfg)
        try:
            initial = query_master_address(conn, args.master_name)
        finally:
            conn.close()
    except SentinelError as e:
        log_event("ERROR", f"Failed to get initial master: {e}", master=args.master_name)
        return 1
    log_event("INFO", f"Master: {initial}", master=args.master_name)

    runtime = RuntimeState()
    common = dict(
        sentinel=args.sentinel,
        master_name=args.master_name,
        channel=channel,
        stop=stop,
        cfg=cfg,
        connect=connect,
    )
    producers = [
        EventSubscriber(**common),
        Poller(**common, poll_interval_s=args.poll_interval),
    ]
    reconciler = Reconciler(
        args.master_name,
        channel,
        materializer or build_materializer(cfg),
        runtime,
        producers=producers,
        stop=stop,
        cfg=cfg,
    )
    reconciler.apply(MasterUpdate(address=initial, source=SOURCE_INITIAL))

    if cfg.status_port > 0:
        serve_in_thread(create_app(args.master_name, runtime, channel), cfg.status_host, cfg.status_port)

    previous = _install_signal_handlers(stop)
    try:
        reconciler.run()
    except ProducerFailure as e:
        log_event("ERROR", f"Shutting down: {e}", master=args.master_name)
        return 1
    finally:
        stop.set()
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
