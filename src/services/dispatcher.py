"""
Single-writer mailbox for a session.

Every inbound event (connect, disconnect, client message, state read) becomes a command in one queue.
One consumer task executes the commands strictly one at a time against the SessionService, so two
near-simultaneous submissions can never both be judged against the same state: the second one sees
the state committed by the first.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Optional

from src.core.shared_types import ConnectionId
from src.services.connections import ConnectionHub
from src.services.session_service import SessionService

logger = logging.getLogger(__name__)


# --- COMMANDS ---
@dataclass(frozen=True)
class Connect:
    connection_id: ConnectionId


@dataclass(frozen=True)
class Disconnect:
    connection_id: ConnectionId


@dataclass(frozen=True)
class ClientMessageReceived:
    connection_id: ConnectionId
    payload: Any


@dataclass(frozen=True)
class ReadState:
    """Read-only, but still serialized so it never observes a half-applied command."""


Command = Connect | Disconnect | ClientMessageReceived | ReadState


class SessionDispatcher:
    def __init__(self, service: SessionService, hub: ConnectionHub) -> None:
        self.service = service
        self.hub = hub
        self._mailbox: Optional[asyncio.Queue[tuple[Command, asyncio.Future[Any]]]] = None
        self._worker: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._mailbox = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(), name="session-dispatcher")

    async def stop(self) -> None:
        """Stop the consumer. Commands still queued are dropped and their callers cancelled."""
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

        if self._mailbox is None:
            return
        while not self._mailbox.empty():
            command, future = self._mailbox.get_nowait()
            logger.debug("Dropping %r on shutdown", command)
            future.cancel()
            self._mailbox.task_done()

    async def submit(self, command: Command) -> Any:
        """
        Queue the command and wait until it has been executed.
        ---

        Returns the command's result (the outbound events, or the snapshot for ReadState).
        If the caller gets cancelled while waiting, the command still runs.
        """
        if not self.running or self._mailbox is None:
            raise RuntimeError("Session dispatcher is not running.")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        await self._mailbox.put((command, future))
        return await future

    async def join(self) -> None:
        """Wait until the mailbox is empty and every resulting event has been written."""
        if self._mailbox is not None:
            await self._mailbox.join()
        await self.hub.drain()

    async def _run(self) -> None:
        assert self._mailbox is not None
        while True:
            command, future = await self._mailbox.get()
            try:
                result = self._execute(command)
            except Exception as exc:
                logger.exception("Command %r failed", command)
                if not future.done():
                    future.set_exception(exc)
            else:
                if isinstance(result, list):
                    self.hub.deliver(result)
                if not future.done():
                    future.set_result(result)
            finally:
                self._mailbox.task_done()

    def _execute(self, command: Command) -> Any:
        """The critical section: runs to completion without yielding to the event loop."""
        if isinstance(command, Connect):
            return self.service.connect(command.connection_id)
        if isinstance(command, Disconnect):
            return self.service.disconnect(command.connection_id)
        if isinstance(command, ClientMessageReceived):
            return self.service.handle_message(command.connection_id, command.payload)
        if isinstance(command, ReadState):
            return self.service.get_state()
        raise TypeError(f"Unknown command: {command!r}")
