"""JSON logging for the relay.

Every record becomes one JSON line: a fixed header (time, level, logger,
event) followed by the process identity and whatever the caller passed as
``extra`` (bucket names, batch sizes, gmond hosts). Keys matching the
configured redaction patterns are masked before serialisation.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import traceback
from datetime import datetime, timezone
from typing import Any, Iterable

from statsrelay.core.logger import mark_configured

REDACTED = "[REDACTED]"

# attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def redact(data: dict[str, Any], patterns: Iterable[str]) -> dict[str, Any]:
    """Copy of ``data`` with matching keys masked, nested dicts included."""
    lowered = [p.lower() for p in patterns]

    def _walk(node: dict[str, Any]) -> dict[str, Any]:
        out = {}
        for key, value in node.items():
            if any(p in key.lower() for p in lowered):
                out[key] = REDACTED
            elif isinstance(value, dict):
                out[key] = _walk(value)
            else:
                out[key] = value
        return out

    return _walk(data)


class RelayJsonFormatter(logging.Formatter):
    def __init__(
        self,
        service: str,
        environment: str,
        redaction_patterns: Iterable[str],
    ):
        super().__init__()
        self.identity = {
            "service": service,
            "environment": environment,
            "hostname": socket.gethostname(),
            "pid": os.getpid(),
        }
        self.redaction_patterns = list(redaction_patterns)

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.identity,
        }
        data.update(
            (k, v) for k, v in record.__dict__.items() if k not in _RECORD_ATTRS
        )
        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = _describe_exception(record.exc_info)
        return json.dumps(redact(data, self.redaction_patterns), default=str)


def _describe_exception(exc_info) -> dict[str, Any]:
    exc_type, exc, tb = exc_info
    return {
        "type": exc_type.__name__,
        "message": str(exc),
        "stack": traceback.format_tb(tb),
    }


def configure_logging(
    service: str,
    environment: str,
    level: str,
    redaction_patterns: Iterable[str],
) -> logging.Logger:
    handler = logging.StreamHandler()
    handler.setFormatter(RelayJsonFormatter(service, environment, redaction_patterns))
    root = logging.getLogger()
    root.handlers = [handler]  # replaces the plain-text fallback handler
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    mark_configured()
    return root


__all__ = ["RelayJsonFormatter", "configure_logging", "redact"]
