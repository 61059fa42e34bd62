"""
Turns domain results into the ordered list of outgoing events, and decides who receives them.

The order of the events in each returned list is the order in which every recipient receives them.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from src.api.models import (
    GameOverEvent,
    GameResetEvent,
    GameStatusEvent,
    LegalMovesEvent,
    MoveAppliedEvent,
    MoveRejectedEvent,
    MoveResult,
    ResetRejectedEvent,
    RoleAssignedEvent,
    RoleVacatedEvent,
    ServerMessage,
    StateSnapshotEvent,
)
from src.core.exceptions import GameError
from src.core.models import GameSnapshot, MoveOutcome
from src.core.shared_types import OBSERVER, ConnectionId, Role
from src.session.game_session import GameSession


@dataclass(frozen=True)
class Outbound:
    """One event for a fixed set of connections."""

    recipients: tuple[ConnectionId, ...]
    message: ServerMessage


def snapshot_event(snapshot: GameSnapshot) -> StateSnapshotEvent:
    evaluation = snapshot.evaluation
    return StateSnapshotEvent(
        position=snapshot.position,
        side_to_move=evaluation.side_to_move,
        in_check=evaluation.in_check,
        is_terminal=evaluation.is_terminal,
        terminal_reason=evaluation.terminal_reason,
        phase=snapshot.phase,
        move_history=list(snapshot.move_history),
    )


def status_event(snapshot: GameSnapshot) -> GameStatusEvent:
    evaluation = snapshot.evaluation
    return GameStatusEvent(
        side_to_move=evaluation.side_to_move,
        in_check=evaluation.in_check,
        is_terminal=evaluation.is_terminal,
        terminal_reason=evaluation.terminal_reason,
        phase=snapshot.phase,
    )


class BroadcastCoordinator:
    def __init__(self, session: GameSession) -> None:
        self.session = session

    def on_connect(self, connection_id: ConnectionId, role: Optional[Role]) -> list[Outbound]:
        """The new connection alone learns its role and catches up with the current state."""
        snapshot = self.session.snapshot()
        return self._to(
            (connection_id,),
            [
                RoleAssignedEvent(role=role if role is not None else OBSERVER),
                snapshot_event(snapshot),
                status_event(snapshot),
            ],
        )

    def on_move(self, action: Any, outcome: MoveOutcome) -> list[Outbound]:
        """
        Fixed order for every connection:
        1. the applied move
        2. the full position (corrects any client that rendered the move incrementally)
        3. the status summary, last, so the UI settles on the final status
        4. game over, only on the transition into a terminal state
        """
        snapshot = self.session.snapshot()
        entry = outcome.entry
        messages: list[ServerMessage] = [
            MoveAppliedEvent(
                action=action,
                result=MoveResult(
                    ply=entry.ply,
                    role=entry.role,
                    uci=entry.uci,
                    san=entry.san,
                    from_square=entry.from_square,
                    to_square=entry.to_square,
                    promotion=entry.promotion,
                    captured=entry.captured,
                    position=entry.position,
                ),
            ),
            snapshot_event(snapshot),
            status_event(snapshot),
        ]
        if outcome.became_terminal:
            messages.append(
                GameOverEvent(
                    winner=outcome.evaluation.winner,
                    reason=outcome.evaluation.terminal_reason,
                )
            )
        return self._to_all(messages)

    def on_rejection(
        self, connection_id: ConnectionId, action: Any, error: GameError
    ) -> list[Outbound]:
        """Only the submitter hears about it."""
        return self._to(
            (connection_id,), [MoveRejectedEvent(action=action, reason=error.reason)]
        )

    def on_role_vacated(self, role: Role) -> list[Outbound]:
        return self._to_all([RoleVacatedEvent(role=role)])

    def on_reset(self) -> list[Outbound]:
        snapshot = self.session.snapshot()
        return self._to_all(
            [GameResetEvent(), snapshot_event(snapshot), status_event(snapshot)]
        )

    def on_reset_rejected(
        self, connection_id: ConnectionId, error: GameError
    ) -> list[Outbound]:
        return self._to((connection_id,), [ResetRejectedEvent(reason=error.reason)])

    def on_legal_moves(
        self, connection_id: ConnectionId, square: Optional[str], moves: list[str]
    ) -> list[Outbound]:
        return self._to(
            (connection_id,), [LegalMovesEvent(square=square, moves=moves)]
        )

    # -- Internal helpers --
    def _to_all(self, messages: Iterable[ServerMessage]) -> list[Outbound]:
        """Everybody connected at the moment the mutation is committed: role-holders and observers."""
        return self._to(self.session.connections, messages)

    def _to(
        self, recipients: tuple[ConnectionId, ...], messages: Iterable[ServerMessage]
    ) -> list[Outbound]:
        return [Outbound(recipients=recipients, message=message) for message in messages]
