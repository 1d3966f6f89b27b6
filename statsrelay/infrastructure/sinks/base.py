from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from statsrelay.core.logger import get_logger
from statsrelay.domain.models import FlushedMetric
from statsrelay.metrics import (
    SINK_BATCHES_SKIPPED_TOTAL,
    SINK_ERRORS_TOTAL,
    SINK_METRICS_TOTAL,
)

logger = get_logger("relay.sink")


class MetricSink(ABC):
    """Destination for flushed values.

    ``submit`` is fire-and-forget. A batch is submitted in order from a
    worker thread; one failing metric is logged and skipped.
    """

    def __init__(self):
        self._batch_lock = threading.Lock()

    @abstractmethod
    def submit(self, name: str, unit: str, value: float) -> None:
        """Send one value."""

    def prepare_batch(self) -> None:
        """Hook run once before each batch, in the worker thread."""

    def submit_many(self, metrics: Sequence[FlushedMetric]) -> int:
        # a batch abandoned on timeout may still be running in its thread;
        # skipping keeps executor threads from piling up behind it
        if not self._batch_lock.acquire(blocking=False):
            SINK_BATCHES_SKIPPED_TOTAL.inc()
            logger.warning("sink_batch_skipped", extra={"batch_size": len(metrics)})
            return 0
        try:
            self.prepare_batch()
            submitted = 0
            for metric in metrics:
                try:
                    self.submit(metric.name, metric.unit, metric.value)
                except Exception as exc:  # noqa: BLE001
                    SINK_ERRORS_TOTAL.inc()
                    logger.warning(
                        "sink_submit_failed",
                        extra={"metric": metric.name, "error": str(exc)},
                    )
                    continue
                submitted += 1
        finally:
            self._batch_lock.release()
        SINK_METRICS_TOTAL.inc(submitted)
        return submitted

    async def submit_batch(self, metrics: Iterable[FlushedMetric]) -> int:
        """Submit a whole flush without blocking the event loop."""
        return await asyncio.to_thread(self.submit_many, list(metrics))

    def close(self) -> None:
        return None
