from statsrelay.core.logger import get_logger

from .base import MetricSink

logger = get_logger("relay.sink.logging")


class LoggingSink(MetricSink):
    """Writes flushed values to the log; used when no gmond host is set."""

    def submit(self, name: str, unit: str, value: float) -> None:
        logger.info(
            "metric_flushed", extra={"metric": name, "unit": unit, "value": value}
        )
