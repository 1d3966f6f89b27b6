from statsrelay.core.config import Settings

from .base import MetricSink
from .ganglia import GangliaSink
from .logging_sink import LoggingSink


def build_sink(settings: Settings) -> MetricSink:
    """Ganglia when gmond hosts are configured, the log otherwise."""
    hosts = settings.ganglia_host_list
    if not hosts:
        return LoggingSink()
    return GangliaSink(
        hosts,
        port=settings.ganglia_port,
        group=settings.ganglia_group,
        spoof_host=settings.ganglia_spoof_host,
    )


__all__ = ["MetricSink", "GangliaSink", "LoggingSink", "build_sink"]
