"""UDP ingestion endpoint.

Each datagram is parsed in its own task and its updates are put on the
bounded queue drained by the aggregation worker. A full queue suspends
the handling task, which is the relay's only backpressure: the kernel
receive buffer absorbs (and eventually drops) the excess instead of the
relay dropping parsed updates.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from statsrelay.core.logger import get_logger
from statsrelay.domain.models import MetricUpdate
from statsrelay.infrastructure.udp.packet_parser import parse_packet
from statsrelay.metrics import (
    DATAGRAMS_TOTAL,
    MALFORMED_DATAGRAMS_TOTAL,
    QUEUE_CURRENT_SIZE,
    SOCKET_ERRORS_TOTAL,
    UPDATES_TOTAL,
)
from statsrelay.utils.retry import retry_async

logger = get_logger("relay.listener")


class MetricDatagramProtocol(asyncio.DatagramProtocol):
    def __init__(self, queue: asyncio.Queue[MetricUpdate]):
        self.queue = queue
        self.transport: Optional[asyncio.DatagramTransport] = None
        self._tasks: set[asyncio.Task] = set()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]
        logger.info(
            "listener_ready", extra={"sockname": transport.get_extra_info("sockname")}
        )

    def datagram_received(self, data: bytes, addr: Any) -> None:
        DATAGRAMS_TOTAL.inc()
        logger.debug(
            "datagram_received",
            extra={"peer": addr, "payload": data.decode("utf-8", errors="replace")},
        )
        task = asyncio.get_running_loop().create_task(self.handle_datagram(data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_datagram(self, data: bytes) -> int:
        """Parse one datagram and enqueue its updates in order."""
        updates = parse_packet(data)
        if not updates:
            MALFORMED_DATAGRAMS_TOTAL.inc()
            return 0
        for update in updates:
            await self.queue.put(update)  # blocks while the queue is full
            UPDATES_TOTAL.inc()
        QUEUE_CURRENT_SIZE.set(self.queue.qsize())
        return len(updates)

    def error_received(self, exc: Exception) -> None:
        SOCKET_ERRORS_TOTAL.inc()
        logger.warning("socket_error", extra={"error": str(exc)})

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None:
            logger.warning("listener_connection_lost", extra={"error": str(exc)})
        else:
            logger.info("listener_closed")

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every datagram still being handled."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def start_listener(
    queue: asyncio.Queue[MetricUpdate],
    host: str,
    port: int,
    retries: int = 5,
) -> tuple[asyncio.DatagramTransport, MetricDatagramProtocol]:
    """Bind the UDP endpoint, retrying while the address is unavailable."""
    loop = asyncio.get_running_loop()

    async def _bind():
        return await loop.create_datagram_endpoint(
            lambda: MetricDatagramProtocol(queue), local_addr=(host, port)
        )

    async def _on_retry(attempt: int, exc: BaseException, sleep_for: float):
        logger.warning(
            "listener_bind_retry",
            extra={
                "attempt": attempt,
                "error": str(exc),
                "sleep_for": round(sleep_for, 2),
            },
        )

    transport, protocol = await retry_async(
        _bind,
        retries=retries,
        base_delay=0.5,
        max_delay=8.0,
        jitter=0.2,
        retry_on=(OSError,),
        on_retry=_on_retry,
    )
    logger.info("listener_bound", extra={"host": host, "port": port})
    return transport, protocol
