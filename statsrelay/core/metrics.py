"""Constructors for the relay's own Prometheus metrics.

Names are forced into the ``statsrelay_`` namespace and checked for
Prometheus-safe snake_case. Everything lands in the default registry served
by the exporter ``statsrelay.main`` starts.
"""

from __future__ import annotations

import re
from typing import Sequence

from prometheus_client import Counter, Gauge, Histogram

NAMESPACE = "statsrelay"

# flush ticks are sub-millisecond for a logging sink and bounded by
# sink_timeout_seconds (default 5s) for gmond
FLUSH_LATENCY_BUCKETS = (0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0)

_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def _qualified(name: str) -> str:
    full = name if name.startswith(NAMESPACE + "_") else f"{NAMESPACE}_{name}"
    if not _NAME_RE.match(full):
        raise ValueError(f"invalid metric name {full!r}")
    return full


def get_counter(name: str, documentation: str) -> Counter:
    return Counter(_qualified(name), documentation)


def get_gauge(name: str, documentation: str) -> Gauge:
    return Gauge(_qualified(name), documentation)


def get_histogram(
    name: str, documentation: str, buckets: Sequence[float]
) -> Histogram:
    return Histogram(_qualified(name), documentation, buckets=buckets)


__all__ = [
    "FLUSH_LATENCY_BUCKETS",
    "NAMESPACE",
    "get_counter",
    "get_gauge",
    "get_histogram",
]
