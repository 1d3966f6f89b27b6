from __future__ import annotations

import socket
from typing import Iterable, Optional

from statsrelay.core.logger import get_logger
from statsrelay.metrics import SINK_ERRORS_TOTAL

from .base import MetricSink
from .gmetric import encode_metadata, encode_value

logger = get_logger("relay.sink.ganglia")

Target = tuple[str, int]


class GangliaSink(MetricSink):
    """Sends flushed values to one or more gmond daemons over UDP.

    Hosts are resolved again before every batch. A host that does not
    resolve, or whose send fails, is logged and skipped; the others still
    receive the batch.
    """

    def __init__(
        self,
        hosts: Iterable[str],
        port: int = 8649,
        group: str = "statsd",
        spoof_host: str = "",
        tmax: int = 14400,
        dmax: int = 14400,
    ):
        super().__init__()
        self.hosts = [h.strip() for h in hosts if h.strip()]
        self.port = port
        self.group = group
        self.spoof = bool(spoof_host)
        self.host = spoof_host or socket.gethostname()
        self.tmax = tmax
        self.dmax = dmax
        self._targets: Optional[list[Target]] = None
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def resolve_targets(self) -> list[Target]:
        targets: list[Target] = []
        for host in self.hosts:
            try:
                infos = socket.getaddrinfo(
                    host, self.port, socket.AF_INET, socket.SOCK_DGRAM
                )
            except (socket.gaierror, UnicodeError) as exc:
                SINK_ERRORS_TOTAL.inc()
                logger.error(
                    "ganglia_resolve_failed", extra={"host": host, "error": str(exc)}
                )
                continue
            targets.append(infos[0][4][:2])
        return targets

    def prepare_batch(self) -> None:
        self._targets = self.resolve_targets()
        if not self._targets:
            logger.warning("ganglia_no_reachable_hosts", extra={"hosts": self.hosts})

    def submit(self, name: str, unit: str, value: float) -> None:
        if self._targets is None:
            self._targets = self.resolve_targets()
        logger.debug(
            "ganglia_send", extra={"metric": name, "unit": unit, "value": value}
        )
        meta = encode_metadata(
            self.host,
            name,
            unit,
            group=self.group,
            spoof=self.spoof,
            tmax=self.tmax,
            dmax=self.dmax,
        )
        packet = encode_value(self.host, name, value, spoof=self.spoof)
        for target in self._targets:
            try:
                self._sock.sendto(meta, target)
                self._sock.sendto(packet, target)
            except OSError as exc:
                SINK_ERRORS_TOTAL.inc()
                logger.warning(
                    "ganglia_send_failed",
                    extra={"target": f"{target[0]}:{target[1]}", "error": str(exc)},
                )

    def close(self) -> None:
        self._sock.close()
