"""Orchestration of communication from the transport to the session (domain) layer, and the events going back."""

import logging
from typing import Any, Optional

from src.api.models import (
    LegalMovesRequest,
    ResetRequest,
    StateSnapshotEvent,
    SubmitActionRequest,
    parse_client_message,
)
from src.core.exceptions import GameError, IllegalActionError, MalformedActionError
from src.core.models import Action
from src.core.shared_types import ConnectionId
from src.services.broadcast import BroadcastCoordinator, Outbound, snapshot_event
from src.session.game_session import GameSession

logger = logging.getLogger(__name__)


class SessionService:
    """
    Orchestration of layers for one game session.
    ---

    Every method handles exactly one inbound event and returns the events to deliver, in order.
    Per-action errors never escape: they become events for the submitter only.
    The caller must not call these methods concurrently (see SessionDispatcher).
    """

    def __init__(
        self, session: GameSession, broadcaster: Optional[BroadcastCoordinator] = None
    ) -> None:
        self.session = session
        self.broadcaster = broadcaster or BroadcastCoordinator(session)

    # -- Lifecycle ---
    def connect(self, connection_id: ConnectionId) -> list[Outbound]:
        """New connection: assign a role and push the current state to that connection only."""
        role = self.session.connect(connection_id)
        return self.broadcaster.on_connect(connection_id, role)

    def disconnect(self, connection_id: ConnectionId) -> list[Outbound]:
        """Vacate the role (if any) and tell everybody still connected."""
        vacated = self.session.disconnect(connection_id)
        if vacated is None:
            return []
        return self.broadcaster.on_role_vacated(vacated)

    # -- Inbound messages ---
    def handle_message(self, connection_id: ConnectionId, raw: Any) -> list[Outbound]:
        """Parse a raw client message and route it. Unreadable messages are answered with move-rejected."""
        try:
            message = parse_client_message(raw)
        except MalformedActionError as exc:
            logger.info("Malformed message from %s: %r", connection_id, raw)
            return self.broadcaster.on_rejection(
                connection_id, self._original_action(raw), exc
            )

        if isinstance(message, SubmitActionRequest):
            return self.submit_action(
                connection_id,
                message.action.to_action(),
                original=self._original_action(raw),
            )
        if isinstance(message, ResetRequest):
            return self.request_reset(connection_id)
        if isinstance(message, LegalMovesRequest):
            return self.legal_moves(connection_id, message.square)
        raise TypeError(f"Unhandled client message: {message!r}")

    def submit_action(
        self, connection_id: ConnectionId, action: Action, original: Any = None
    ) -> list[Outbound]:
        """Make a move attempt. `original` is echoed back to clients for correlation."""
        if original is None:
            original = self._describe(action)

        try:
            outcome = self.session.submit_action(connection_id, action)
        except GameError as exc:
            logger.info(
                "Rejected action %r from %s: %s", original, connection_id, exc.reason
            )
            return self.broadcaster.on_rejection(connection_id, original, exc)

        logger.info("Move made by %s: %s", outcome.entry.role, outcome.entry.san)
        if outcome.became_terminal:
            logger.info(
                "Game over: %s, winner %s",
                outcome.evaluation.terminal_reason,
                outcome.evaluation.winner,
            )
        return self.broadcaster.on_move(original, outcome)

    def request_reset(self, connection_id: ConnectionId) -> list[Outbound]:
        try:
            self.session.request_reset(connection_id)
        except GameError as exc:
            logger.info("Rejected reset from %s: %s", connection_id, exc.reason)
            return self.broadcaster.on_reset_rejected(connection_id, exc)
        return self.broadcaster.on_reset()

    def legal_moves(
        self, connection_id: ConnectionId, square: Optional[str] = None
    ) -> list[Outbound]:
        """Read-only: the moves the side to move could make (used for highlighting)."""
        try:
            moves = self.session.legal_moves(square)
        except IllegalActionError:
            moves = []
        return self.broadcaster.on_legal_moves(connection_id, square, moves)

    def get_state(self) -> StateSnapshotEvent:
        """Current state, for polling clients."""
        return snapshot_event(self.session.snapshot())

    # -- Internal helpers --
    def _original_action(self, raw: Any) -> Any:
        """The action as the client sent it (the whole message if it does not even have an action)."""
        if isinstance(raw, dict) and "action" in raw:
            return raw["action"]
        return raw

    def _describe(self, action: Action) -> dict[str, Any]:
        described: dict[str, Any] = {"from": action.from_square, "to": action.to_square}
        if action.promotion:
            described["promotion"] = action.promotion
        return described
