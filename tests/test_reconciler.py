import threading

import pytest

from rssc.errors import ProducerFailure
from rssc.models import Address, MasterUpdate
from rssc.producer import Producer
from rssc.reconciler import Reconciler
from rssc.runtime import RuntimeState

from fakes import RecordingMaterializer, event_messages, wait_until


class AlertSpy:
    def __init__(self):
        self.calls = []

    def __call__(self, master_name, old, new, source):
        self.calls.append((master_name, old, new, source))
        return True


class DeadProducer:
    """Looks like a producer whose thread never stays up."""

    def __init__(self, name="poller"):
        self.name = name
        self.last_error = RuntimeError("boom")
        self.starts = 0

    def start(self):
        self.starts += 1

    def is_alive(self):
        return False


class CrashOnceProducer(Producer):
    """Crashes on its first run and publishes on the next one."""

    name = "flaky"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.runs = 0

    def _loop(self):
        self.runs += 1
        if self.runs == 1:
            raise RuntimeError("lost track of reply")
        self.channel.publish(MasterUpdate(address=Address("10.0.0.9", 6380), source="poll"))
        self.stop.wait()


class CrashingProducer(Producer):
    name = "crasher"

    def _loop(self):
        raise RuntimeError("unexpected reply type")


def _reconciler(channel, fast_settings, materializer=None, producers=(), alert=None):
    return Reconciler(
        "mymaster",
        channel,
        materializer or RecordingMaterializer(),
        RuntimeState(),
        producers=producers,
        cfg=fast_settings,
        alert=alert or AlertSpy(),
    )


def test_every_update_is_materialized_once_in_per_producer_order(channel, stop, fast_settings):
    materializer = RecordingMaterializer()
    rec = _reconciler(channel, fast_settings, materializer)
    count = 200

    def _produce(host, source):
        for port in range(1, count + 1):
            channel.publish(MasterUpdate(address=Address(host, port), source=source))

    runner = threading.Thread(target=rec.run, daemon=True)
    runner.start()
    producers = [
        threading.Thread(target=_produce, args=("poll-host", "poll")),
        threading.Thread(target=_produce, args=("event-host", "event")),
    ]
    for t in producers:
        t.start()
    for t in producers:
        t.join()
    assert wait_until(lambda: len(materializer.calls) == 2 * count)
    stop.set()
    runner.join(2)

    assert len(materializer.calls) == 2 * count
    for host in ("poll-host", "event-host"):
        ports = [a.port for a in materializer.calls if a.host == host]
        assert ports == list(range(1, count + 1))
    assert rec.runtime.snapshot()["updates_applied"] == 2 * count


def test_identical_updates_are_not_deduplicated(channel, fast_settings):
    materializer = RecordingMaterializer()
    alert = AlertSpy()
    rec = _reconciler(channel, fast_settings, materializer, alert=alert)
    addr = Address("10.0.0.9", 6380)
    rec.apply(MasterUpdate(address=addr, source="event"))
    rec.apply(MasterUpdate(address=addr, source="poll"))
    assert materializer.calls == [addr, addr]
    assert alert.calls == []


def test_master_change_is_alerted(channel, fast_settings):
    alert = AlertSpy()
    rec = _reconciler(channel, fast_settings, alert=alert)
    old, new = Address("10.0.0.1", 6379), Address("10.0.0.9", 6380)
    rec.apply(MasterUpdate(address=old, source="initial"))
    rec.apply(MasterUpdate(address=new, source="event"))
    assert alert.calls == [("mymaster", old, new, "event")]
    assert rec.runtime.current_master() == new
    assert "Master changed: 10.0.0.1:6379 -> 10.0.0.9:6380" in event_messages("WARN")


def test_materializer_failure_does_not_stop_reconciliation(channel, fast_settings):
    bad = Address("10.0.0.2", 6379)
    materializer = RecordingMaterializer(fail_on=[bad])
    rec = _reconciler(channel, fast_settings, materializer)
    rec.apply(MasterUpdate(address=bad, source="poll"))
    rec.apply(MasterUpdate(address=Address("10.0.0.3", 6379), source="poll"))
    assert len(materializer.calls) == 2
    assert any("Materializer failed for 10.0.0.2:6379" in m for m in event_messages("ERROR"))


def test_dead_producer_is_restarted_then_run_fails(channel, stop, fast_settings):
    dead = DeadProducer()
    rec = _reconciler(channel, fast_settings, producers=[dead])
    with pytest.raises(ProducerFailure):
        rec.run()
    assert dead.starts == 1 + fast_settings.max_producer_restarts
    assert stop.is_set()
    [status] = rec.runtime.list_producers()
    assert status.restarts == fast_settings.max_producer_restarts
    assert status.alive is False
    assert "RuntimeError: boom" in status.last_error


def test_no_restarts_while_stopping(channel, stop, fast_settings):
    dead = DeadProducer()
    rec = _reconciler(channel, fast_settings, producers=[dead])
    stop.set()
    rec.supervise()
    assert dead.starts == 0


def test_crashing_producer_thread_is_logged(sentinel_addr, channel, stop, fast_settings):
    p = CrashingProducer(sentinel=sentinel_addr, master_name="mymaster", channel=channel, stop=stop, cfg=fast_settings)
    p.start()
    p.join(2)
    assert not p.is_alive()
    assert isinstance(p.last_error, RuntimeError)
    assert "crasher crashed: RuntimeError: unexpected reply type" in event_messages("ERROR")


def test_crashed_producer_is_restarted_and_publishes_again(sentinel_addr, channel, stop, fast_settings):
    producer = CrashOnceProducer(sentinel=sentinel_addr, master_name="mymaster", channel=channel, stop=stop, cfg=fast_settings)
    materializer = RecordingMaterializer()
    rec = _reconciler(channel, fast_settings, materializer, producers=[producer])
    runner = threading.Thread(target=rec.run, daemon=True)
    runner.start()
    try:
        assert wait_until(lambda: materializer.calls == [Address("10.0.0.9", 6380)])
    finally:
        stop.set()
        runner.join(2)
        producer.join(2)
    assert producer.runs == 2
    [status] = rec.runtime.list_producers()
    assert status.restarts == 1
    assert "RuntimeError: lost track of reply" in status.last_error
    assert any("Restarting flaky (1/2)" in m for m in event_messages("WARN"))
