from __future__ import annotations

from threading import Event
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_when_event_set,
    wait_exponential,
    wait_random,
)

from .errors import TransportError
from .events import log_event
from .settings import Settings

T = TypeVar("T")


def reconnect_policy(stop: Event, cfg: Settings, unit: str, master: str | None = None) -> Retrying:
    """Capped exponential backoff plus up to `backoff_jitter_s` of random jitter.

    Only TransportError is retried. Waits go through `stop.wait` so a
    cancellation wakes the sleeper; once `stop` is set the last error is
    re-raised to the caller.
    """

    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        log_event(
            "ERROR",
            f"{unit}: {exc}; retrying in {delay:.2f}s (attempt {state.attempt_number})",
            master=master,
        )

    return Retrying(
        retry=retry_if_exception_type(TransportError),
        stop=stop_when_event_set(stop),
        wait=wait_exponential(multiplier=cfg.backoff_initial_s, max=cfg.backoff_max_s)
        + wait_random(0, cfg.backoff_jitter_s),
        sleep=stop.wait,
        before_sleep=_before_sleep,
        reraise=True,
    )


def with_backoff(fn: Callable[[], T], stop: Event, cfg: Settings, unit: str, master: str | None = None) -> T:
    return reconnect_policy(stop, cfg, unit, master)(fn)
