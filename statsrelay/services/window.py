from __future__ import annotations

import math
from typing import Dict, List

from statsrelay.core.logger import get_logger
from statsrelay.domain.models import FlushedMetric, MetricKind, MetricUpdate
from statsrelay.metrics import BUCKETS_TRACKED, GAUGES_DROPPED_TOTAL

logger = get_logger("relay.window")


class AggregationWindow:
    """Counter and timer state for the current flush interval.

    Notes:
        - Owned by exactly one task (the aggregation worker); no locking.
        - Bucket names survive a flush, their values do not: idle buckets
          keep reporting zero until the process restarts.
    """

    def __init__(self):
        self.counters: Dict[str, int] = {}
        self.timer_samples: Dict[str, List[float]] = {}
        self.gauges_dropped = 0

    def apply(self, update: MetricUpdate) -> None:
        if update.kind is MetricKind.COUNTER:
            estimate = _as_float(update.value) / _effective_rate(update.sampling_rate)
            # a tiny rate can push a finite value past float range
            delta = round(estimate) if math.isfinite(estimate) else 0
            self.counters[update.bucket] = self.counters.get(update.bucket, 0) + delta
        elif update.kind is MetricKind.TIMER:
            self.timer_samples.setdefault(update.bucket, []).append(
                _as_float(update.value)
            )
        else:
            self.gauges_dropped += 1
            GAUGES_DROPPED_TOTAL.inc()
            logger.debug("gauge_ignored", extra={"bucket": update.bucket})

    def flush(self, interval_seconds: float) -> List[FlushedMetric]:
        """Summarise the window and reset it.

        Counters are reported as a per-second average over the interval,
        timers as the arithmetic mean of their samples (0 when none arrived).
        """
        batch: List[FlushedMetric] = []
        for bucket, total in self.counters.items():
            batch.append(
                FlushedMetric(
                    name=f"count_{bucket}",
                    unit="count",
                    value=total / interval_seconds,
                )
            )
            self.counters[bucket] = 0
        for bucket, samples in self.timer_samples.items():
            avg = sum(samples) / len(samples) if samples else 0.0
            batch.append(FlushedMetric(name=f"avg_{bucket}", unit="ms", value=avg))
            samples.clear()
        BUCKETS_TRACKED.set(len(self.counters) + len(self.timer_samples))
        return batch


def _effective_rate(rate: float) -> float:
    # rates outside (0, 1] would fault or deflate the estimate
    if not math.isfinite(rate) or rate <= 0 or rate > 1:
        return 1.0
    return rate


def _as_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0
