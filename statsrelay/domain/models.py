from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MetricKind(str, Enum):
    """Metric type suffix used on the wire."""

    COUNTER = "c"
    TIMER = "ms"
    GAUGE = "g"


class MetricUpdate(BaseModel):
    """One metric encoding recovered from an inbound datagram."""

    bucket: str = Field(..., min_length=1, description="Aggregation key")
    value: str = Field(..., description="Numeric literal as sent")
    kind: MetricKind
    sampling_rate: float = Field(1.0, description="Sender-side sampling rate")

    model_config = ConfigDict(frozen=True)


class FlushedMetric(BaseModel):
    """Summarised value handed to a sink at flush time."""

    name: str
    unit: str
    value: float

    model_config = ConfigDict(frozen=True)
