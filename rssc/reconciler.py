from __future__ import annotations

from threading import Event
from typing import Callable, Sequence

from .alerts import master_changed
from .channel import UpdateChannel
from .errors import ProducerFailure
from .events import log_event
from .materializer import Materializer
from .models import MasterUpdate
from .producer import Producer
from .runtime import RuntimeState
from .settings import Settings, settings as default_settings

AlertFn = Callable[..., object]


class Reconciler:
    """Drains the update channel and materializes every address it receives.

    Runs on the caller's thread. Updates are applied in arrival order with no
    deduplication. Between updates it supervises the producers: a dead one is
    restarted until its restart budget runs out, then the run fails.
    """

    def __init__(
        self,
        master_name: str,
        channel: UpdateChannel,
        materializer: Materializer,
        runtime: RuntimeState,
        producers: Sequence[Producer] = (),
        stop: Event | None = None,
        cfg: Settings = default_settings,
        alert: AlertFn | None = None,
    ):
        self.master_name = master_name
        self.channel = channel
        self.materializer = materializer
        self.runtime = runtime
        self.producers = list(producers)
        self.stop = stop or channel.stop
        self.cfg = cfg
        self.alert = alert or (lambda *args: master_changed(*args, cfg=cfg))
        self._restarts: dict[str, int] = {p.name: 0 for p in self.producers}

    def apply(self, update: MasterUpdate) -> None:
        addr = update.address
        log_event("INFO", f"Received new master from {update.source}: {addr}", master=self.master_name)
        try:
            self.materializer.materialize(addr)
        except Exception as e:
            log_event("ERROR", f"Materializer failed for {addr}: {type(e).__name__}: {e}", master=self.master_name)
        prev = self.runtime.record_update(update)
        if prev is not None and prev != addr:
            log_event("WARN", f"Master changed: {prev} -> {addr}", master=self.master_name)
            self.alert(self.master_name, prev, addr, update.source)

    def start_producers(self) -> None:
        for p in self.producers:
            p.start()
            self.runtime.set_producer(p.name, alive=p.is_alive(), restarts=self._restarts[p.name])

    def run(self) -> None:
        """Block until `stop` is set. Raises ProducerFailure on supervision give-up."""
        self.start_producers()
        log_event("INFO", "Reconciler started", master=self.master_name)
        while not self.stop.is_set():
            update = self.channel.receive(timeout=self.cfg.supervise_interval_s)
            if update is not None:
                self.apply(update)
            self.supervise()
        log_event("INFO", "Reconciler stopped", master=self.master_name)

    def supervise(self) -> None:
        for p in self.producers:
            if p.is_alive() or self.stop.is_set():
                continue
            err = f"{type(p.last_error).__name__}: {p.last_error}" if p.last_error else "exited"
            restarts = self._restarts[p.name]
            if restarts >= self.cfg.max_producer_restarts:
                self.runtime.set_producer(p.name, alive=False, error=err)
                log_event(
                    "ERROR",
                    f"{p.name} died after {restarts} restarts ({err}); giving up",
                    master=self.master_name,
                )
                self.stop.set()
                raise ProducerFailure(f"{p.name} keeps failing: {err}")
            self._restarts[p.name] = restarts + 1
            log_event("WARN", f"Restarting {p.name} ({restarts + 1}/{self.cfg.max_producer_restarts}): {err}", master=self.master_name)
            p.start()
            self.runtime.set_producer(p.name, alive=p.is_alive(), restarts=restarts + 1, error=err)
