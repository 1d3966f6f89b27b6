import asyncio
import socket

import pytest
from statsrelay import main as main_mod
from statsrelay.core.config import Settings
from statsrelay.infrastructure.sinks.base import MetricSink


class RecordingSink(MetricSink):
    def __init__(self):
        super().__init__()
        self.submitted = []
        self.closed = False

    def submit(self, name, unit, value):
        self.submitted.append((name, unit, value))

    def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_run_relay_end_to_end(monkeypatch):
    sink = RecordingSink()
    bound = asyncio.get_running_loop().create_future()
    real_start_listener = main_mod.start_listener

    async def start_listener_spy(*args, **kwargs):
        transport, protocol = await real_start_listener(*args, **kwargs)
        bound.set_result(transport.get_extra_info("sockname"))
        return transport, protocol

    monkeypatch.setattr(main_mod, "build_sink", lambda cfg: sink)
    monkeypatch.setattr(main_mod, "start_listener", start_listener_spy)

    cfg = Settings(listen_host="127.0.0.1", listen_port=0, flush_interval_seconds=60)
    shutdown = asyncio.Event()
    relay = asyncio.create_task(main_mod.run_relay(cfg, shutdown))

    host, port = await asyncio.wait_for(bound, 2.0)
    sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        for payload in (
            b"foo:100|c",
            b"foo:50|c|@0.5",
            b"bar:5|ms\nbar:15|ms",
            b"g:1|g",
        ):
            sender.sendto(payload, (host, port))
        await asyncio.sleep(0.1)
    finally:
        sender.close()
    shutdown.set()
    await asyncio.wait_for(relay, 3.0)

    # shutdown flush covers the whole 60s window
    assert sink.submitted == [
        ("count_foo", "count", pytest.approx(200 / 60)),
        ("avg_bar", "ms", pytest.approx(10.0)),
    ]
    assert sink.closed


@pytest.mark.asyncio
async def test_run_relay_propagates_worker_failure(monkeypatch, caplog):
    caplog.set_level("ERROR")
    sink = RecordingSink()

    async def failing_worker(*args, **kwargs):
        raise RuntimeError("window corrupted")

    monkeypatch.setattr(main_mod, "build_sink", lambda cfg: sink)
    monkeypatch.setattr(main_mod, "aggregation_worker", failing_worker)

    cfg = Settings(listen_host="127.0.0.1", listen_port=0)
    with pytest.raises(RuntimeError, match="window corrupted"):
        await asyncio.wait_for(main_mod.run_relay(cfg, asyncio.Event()), 2.0)

    assert sink.closed
    assert any(r.message == "aggregation_worker_failed" for r in caplog.records)


def test_main_exits_nonzero_when_relay_fails(monkeypatch):
    async def crashing_run(argv):
        raise RuntimeError("window corrupted")

    monkeypatch.setattr(main_mod, "_run", crashing_run)
    with pytest.raises(SystemExit) as exc_info:
        main_mod.main([])
    assert exc_info.value.code == 1
