"""Aggregation worker: the single owner of the aggregation window.

Queued updates and flush ticks are handled by the same task, so a flush
never observes a half-applied update.
"""

from __future__ import annotations

import asyncio
import time
from typing import List

from statsrelay.core.logger import get_logger
from statsrelay.domain.models import FlushedMetric, MetricUpdate
from statsrelay.infrastructure.sinks.base import MetricSink
from statsrelay.metrics import (
    FLUSH_LATENCY_SECONDS,
    FLUSHES_TOTAL,
    QUEUE_CURRENT_SIZE,
    SINK_ERRORS_TOTAL,
    UPDATE_ERRORS_TOTAL,
)
from statsrelay.services.window import AggregationWindow

logger = get_logger("relay.aggregator")


async def flush_window(
    window: AggregationWindow,
    sink: MetricSink,
    interval_seconds: float,
    sink_timeout_seconds: float,
) -> List[FlushedMetric]:
    """Summarise and reset the window, then hand the batch to the sink.

    Sink failures and timeouts are logged and counted; they never reach the
    caller.
    """
    started = time.perf_counter()
    batch = window.flush(interval_seconds)
    FLUSHES_TOTAL.inc()
    if batch:
        try:
            submitted = await asyncio.wait_for(
                sink.submit_batch(batch), sink_timeout_seconds
            )
        except asyncio.TimeoutError:
            SINK_ERRORS_TOTAL.inc()
            logger.error(
                "sink_batch_timeout",
                extra={"batch_size": len(batch), "timeout": sink_timeout_seconds},
            )
        except Exception as exc:  # noqa: BLE001
            SINK_ERRORS_TOTAL.inc()
            logger.exception(
                "sink_batch_failed",
                extra={"batch_size": len(batch), "error": str(exc)},
            )
        else:
            logger.info(
                "flush_completed",
                extra={"batch_size": len(batch), "submitted": submitted},
            )
    FLUSH_LATENCY_SECONDS.observe(time.perf_counter() - started)
    return batch


def _apply(window: AggregationWindow, update: MetricUpdate) -> None:
    try:
        window.apply(update)
    except Exception:  # noqa: BLE001
        UPDATE_ERRORS_TOTAL.inc()
        logger.exception(
            "update_apply_failed",
            extra={"bucket": update.bucket, "kind": update.kind.value},
        )


async def aggregation_worker(
    queue: asyncio.Queue[MetricUpdate],
    window: AggregationWindow,
    sink: MetricSink,
    interval_seconds: float,
    stop_event: asyncio.Event,
    sink_timeout_seconds: float = 5.0,
    poll_seconds: float = 0.5,
) -> None:
    """Apply queued updates and flush on a fixed schedule until stopped.

    After ``stop_event`` is set the remaining queue is applied and one final
    flush is performed.
    """
    next_tick = time.monotonic() + interval_seconds
    logger.info("aggregation_worker_started", extra={"interval": interval_seconds})

    while not stop_event.is_set():
        if not queue.empty():
            _apply(window, queue.get_nowait())
        else:
            # wake up for the tick, or periodically to notice stop_event
            timeout = min(max(next_tick - time.monotonic(), 0), poll_seconds)
            try:
                item = await asyncio.wait_for(queue.get(), timeout)
                _apply(window, item)
            except asyncio.TimeoutError:
                pass
            QUEUE_CURRENT_SIZE.set(queue.qsize())

        now = time.monotonic()
        if now >= next_tick:
            await flush_window(window, sink, interval_seconds, sink_timeout_seconds)
            next_tick += interval_seconds
            if next_tick <= now:
                # flush overran a whole period; restart the schedule
                next_tick = now + interval_seconds

    # Final flush
    drained = 0
    while not queue.empty():
        _apply(window, queue.get_nowait())
        drained += 1
    QUEUE_CURRENT_SIZE.set(0)
    await flush_window(window, sink, interval_seconds, sink_timeout_seconds)
    logger.info("aggregation_worker_stopped", extra={"drained": drained})
