"""The single chokepoint every state-changing action passes through."""

from src.core.exceptions import GameOverError, NotAParticipantError, NotYourTurnError
from src.core.shared_types import ConnectionId, Role
from src.session.registry import SessionRegistry
from src.session.store import GameStateStore


class AuthorityGate:
    def __init__(self, registry: SessionRegistry, store: GameStateStore) -> None:
        self.registry = registry
        self.store = store

    def authorize(self, connection_id: ConnectionId) -> Role:
        """
        Check the submitter currently holds the right to act. Returns the submitter's role.
        ---

        1. the game must not be over
        2. the submitter must hold a role
        3. that role must be the side to move recorded in the authoritative state (at the instant of the check)
        """
        evaluation = self.store.evaluation
        if evaluation.is_terminal:
            raise GameOverError(
                f"Game is over ({evaluation.terminal_reason}). Request a reset to play again."
            )

        role = self.registry.role_of(connection_id)
        if role is None:
            raise NotAParticipantError(
                f"Connection {connection_id} holds no role and cannot act."
            )

        if role != evaluation.side_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {evaluation.side_to_move} to make a move first."
            )
        return role
