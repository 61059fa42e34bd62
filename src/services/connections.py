"""
Fan-out of outgoing events to the open connections.

Every connection gets its own queue and writer task. Delivering only enqueues, so a slow or stalled socket
delays nobody but itself. Events for one connection are written in the order they were enqueued.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

from src.api.models import to_wire
from src.core.shared_types import ConnectionId
from src.services.broadcast import Outbound

logger = logging.getLogger(__name__)

# e.g. WebSocket.send_json
Sender = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass
class _Outbox:
    send: Sender
    queue: asyncio.Queue[dict[str, Any]] = field(default_factory=asyncio.Queue)
    writer: Optional[asyncio.Task[None]] = None
    failed: bool = False


class ConnectionHub:
    def __init__(self) -> None:
        self._outboxes: dict[ConnectionId, _Outbox] = {}

    def register(self, connection_id: ConnectionId, send: Sender) -> None:
        """Must be called from within the running event loop."""
        outbox = _Outbox(send=send)
        outbox.writer = asyncio.create_task(
            self._write(connection_id, outbox), name=f"writer-{connection_id}"
        )
        self._outboxes[connection_id] = outbox

    async def unregister(self, connection_id: ConnectionId) -> None:
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is None or outbox.writer is None:
            return
        outbox.writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await outbox.writer

    def deliver(self, outbound: Iterable[Outbound]) -> None:
        """Enqueue every event for its recipients. Never blocks."""
        for item in outbound:
            payload = to_wire(item.message)
            for connection_id in item.recipients:
                outbox = self._outboxes.get(connection_id)
                if outbox is None or outbox.failed:
                    logger.debug(
                        "Skipping %s for gone connection %s", payload["event"], connection_id
                    )
                    continue
                outbox.queue.put_nowait(payload)

    async def drain(self) -> None:
        """Wait until everything enqueued so far has been written (or dropped)."""
        await asyncio.gather(*(outbox.queue.join() for outbox in self._outboxes.values()))

    async def close(self) -> None:
        for connection_id in list(self._outboxes):
            await self.unregister(connection_id)

    async def _write(self, connection_id: ConnectionId, outbox: _Outbox) -> None:
        while True:
            payload = await outbox.queue.get()
            try:
                await outbox.send(payload)
            except Exception:
                # the transport reports the disconnect on its own; stop writing to this socket
                logger.warning(
                    "Send to %s failed, dropping its pending events", connection_id, exc_info=True
                )
                outbox.failed = True
                outbox.queue.task_done()
                self._discard_pending(outbox)
                return
            outbox.queue.task_done()

    def _discard_pending(self, outbox: _Outbox) -> None:
        while not outbox.queue.empty():
            outbox.queue.get_nowait()
            outbox.queue.task_done()
