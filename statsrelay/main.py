from __future__ import annotations

import asyncio
import signal
from typing import Optional, Sequence

from prometheus_client import start_http_server

from statsrelay.core.config import Settings
from statsrelay.core.logger import get_logger
from statsrelay.core.logging_config import configure_logging
from statsrelay.infrastructure.sinks import build_sink
from statsrelay.infrastructure.udp.listener import start_listener
from statsrelay.services.aggregator import aggregation_worker
from statsrelay.services.window import AggregationWindow

logger = get_logger("relay.main")


def load_settings(argv: Optional[Sequence[str]] = None) -> Settings:
    """Settings from the environment, overridden by command-line flags."""
    cli_args = True if argv is None else list(argv)
    return Settings(_cli_parse_args=cli_args)


async def run_relay(cfg: Settings, shutdown_event: asyncio.Event) -> None:
    """Wire listener, queue, window, worker and sink; run until shutdown."""
    queue: asyncio.Queue = asyncio.Queue(maxsize=cfg.queue_max_size)
    window = AggregationWindow()
    sink = build_sink(cfg)
    logger.info(
        "sink_selected",
        extra={"sink": type(sink).__name__, "hosts": cfg.ganglia_host_list},
    )

    transport, protocol = await start_listener(
        queue, cfg.listen_host, cfg.listen_port, retries=cfg.bind_retries
    )
    worker_stop = asyncio.Event()
    worker_task = asyncio.create_task(
        aggregation_worker(
            queue,
            window,
            sink,
            cfg.flush_interval_seconds,
            worker_stop,
            sink_timeout_seconds=cfg.sink_timeout_seconds,
        )
    )
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    try:
        await asyncio.wait(
            {shutdown_task, worker_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        shutdown_task.cancel()
        transport.close()
        try:
            if worker_task.done():
                # nothing left to consume the queue, so in-flight datagrams are lost
                error = None if worker_task.cancelled() else worker_task.exception()
                if error is not None:
                    logger.error("aggregation_worker_failed", exc_info=error)
                    raise error
            else:
                await protocol.drain()
                worker_stop.set()
                await worker_task
        finally:
            sink.close()


async def _run(argv: Optional[Sequence[str]] = None) -> None:
    cfg = load_settings(argv)
    configure_logging(
        service=cfg.otel_service_name,
        level=cfg.effective_log_level,
        environment=cfg.app_environment,
        redaction_patterns=cfg.app_log_redaction_patterns,
    )
    logger.info(
        "relay_starting",
        extra={
            "listen": f"{cfg.listen_host}:{cfg.listen_port}",
            "flush_interval": cfg.flush_interval_seconds,
        },
    )

    if cfg.metrics_port:
        start_http_server(cfg.metrics_port)
        logger.info("metrics_listening", extra={"port": cfg.metrics_port})

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    # Support double signal: first gentle, second immediate
    state = {"signalled": False}

    def _on_signal(signum, frame):  # noqa: D401
        if not state["signalled"]:
            logger.info("signal_received", extra={"signal": signum, "action": "drain"})
            loop.call_soon_threadsafe(shutdown_event.set)
            state["signalled"] = True
        else:
            logger.warning(
                "second_signal_exit", extra={"signal": signum, "action": "cancel"}
            )
            for task in asyncio.all_tasks(loop):
                loop.call_soon_threadsafe(task.cancel)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, _on_signal)
        except (ValueError, OSError):
            logger.debug("signal_handler_install_failed", extra={"signal": sig})

    try:
        await run_relay(cfg, shutdown_event)
    except asyncio.CancelledError:  # pragma: no cover
        logger.info("relay_cancelled")
    finally:
        logger.info("relay_stopping")


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        asyncio.run(_run(argv))
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_shutdown")
    except Exception:  # noqa: BLE001
        logger.exception("fatal_error_main")
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
