from .models import FlushedMetric, MetricKind, MetricUpdate

__all__ = ["FlushedMetric", "MetricKind", "MetricUpdate"]
