from __future__ import annotations

import re
from typing import Optional

from statsrelay.core.logger import get_logger
from statsrelay.domain.models import MetricKind, MetricUpdate

logger = get_logger("relay.packet_parser")

# Anything outside the line protocol alphabet is removed before matching,
# including newlines between concatenated encodings.
_SANITIZE_RE = re.compile(r"[^a-zA-Z0-9\-_.:|@]")
_PACKET_RE = re.compile(
    r"(?P<bucket>[a-zA-Z0-9_.]+):(?P<value>-?[0-9.]+)\|(?P<kind>c|ms|g)"
    r"(\|@(?P<rate>[0-9.]+))?"
)


def parse_packet(raw: bytes) -> list[MetricUpdate]:
    """Translate one datagram into the metric updates it carries.

    Malformed fragments are skipped; the result may be empty. Updates come
    back in the order they appear in the datagram.
    """
    text = _SANITIZE_RE.sub("", raw.decode("utf-8", errors="ignore"))
    updates: list[MetricUpdate] = []
    for match in _PACKET_RE.finditer(text):
        kind = MetricKind(match.group("kind"))
        value = match.group("value")
        if kind is MetricKind.TIMER and _coerce_float(value) is None:
            # keep the sample so the timer cadence is preserved
            value = "0"
        rate = _coerce_float(match.group("rate"))
        update = MetricUpdate(
            bucket=match.group("bucket"),
            value=value,
            kind=kind,
            sampling_rate=1.0 if rate is None else rate,
        )
        logger.debug(
            "packet_parsed",
            extra={
                "bucket": update.bucket,
                "value": update.value,
                "kind": update.kind.value,
                "sampling_rate": update.sampling_rate,
            },
        )
        updates.append(update)
    return updates


def _coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
