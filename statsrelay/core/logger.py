"""Component loggers (``relay.listener``, ``relay.sink.ganglia``, ...).

Until ``configure_logging`` installs the JSON handler, the first logger
handed out sets up plain-text stderr output so library use and tests still
see relay events.
"""

from __future__ import annotations

import logging

_FALLBACK_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def get_logger(component: str) -> logging.Logger:
    global _configured

    if not _configured:
        logging.basicConfig(level=logging.INFO, format=_FALLBACK_FORMAT)
        _configured = True
    return logging.getLogger(component)


def mark_configured() -> None:
    """Called by ``configure_logging`` once the JSON handler is in place."""
    global _configured
    _configured = True
