"""Prometheus metrics for the relay process itself."""

from statsrelay.core.metrics import (
    FLUSH_LATENCY_BUCKETS,
    get_counter,
    get_gauge,
    get_histogram,
)

# Ingestion
DATAGRAMS_TOTAL = get_counter("datagrams_total", "Total datagrams received")
UPDATES_TOTAL = get_counter("updates_total", "Total metric updates parsed")
MALFORMED_DATAGRAMS_TOTAL = get_counter(
    "malformed_datagrams_total", "Datagrams that yielded no metric update"
)
SOCKET_ERRORS_TOTAL = get_counter(
    "socket_errors_total", "Transient socket errors reported by the listener"
)

# Aggregation
GAUGES_DROPPED_TOTAL = get_counter(
    "gauges_dropped_total", "Gauge updates discarded (gauges are unsupported)"
)
UPDATE_ERRORS_TOTAL = get_counter(
    "update_errors_total", "Queued updates the window could not apply"
)
QUEUE_CURRENT_SIZE = get_gauge(
    "queue_current_size", "Current size of the in-memory update queue"
)
BUCKETS_TRACKED = get_gauge(
    "buckets_tracked", "Counter and timer buckets known at the last flush"
)

# Flush / sink
FLUSHES_TOTAL = get_counter("flushes_total", "Total flush ticks")
FLUSH_LATENCY_SECONDS = get_histogram(
    "flush_latency_seconds",
    "Time spent summarising and submitting one flush",
    FLUSH_LATENCY_BUCKETS,
)
SINK_METRICS_TOTAL = get_counter(
    "sink_metrics_total", "Flushed values accepted by the sink"
)
SINK_ERRORS_TOTAL = get_counter(
    "sink_errors_total", "Sink resolution, send or timeout failures"
)
SINK_BATCHES_SKIPPED_TOTAL = get_counter(
    "sink_batches_skipped_total",
    "Batches dropped because the previous batch was still being sent",
)
