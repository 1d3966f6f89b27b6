"""UDP statsd relay aggregating counters and timers for Ganglia."""

__version__ = "0.1.0"
