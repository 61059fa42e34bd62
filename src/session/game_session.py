"""
The GameSession is the entrypoint into the domain layer for the service layer.
It owns the role bindings and the authoritative game state, and is the only object that touches them.

NOTE: the session is not thread/task safe on its own. The service layer feeds it one command at a time
(see src/services/dispatcher.py), which makes every method below a critical section.
"""

from typing import Optional, Self

from src.core.config import STARTING_FEN
from src.core.models import Action, GameSnapshot, MoveOutcome
from src.core.shared_types import ConnectionId, Role, SessionPhase
from src.rules.chess_engine import ChessRulesEngine
from src.rules.engine import RulesEngine
from src.session.gate import AuthorityGate
from src.session.lifecycle import ConnectionLifecycleManager
from src.session.registry import SessionRegistry
from src.session.reset import ResetCoordinator
from src.session.store import GameStateStore


class GameSession:
    def __init__(self, engine: RulesEngine) -> None:
        self.engine = engine
        self.registry = SessionRegistry()
        self.store = GameStateStore(engine)
        self.gate = AuthorityGate(self.registry, self.store)
        self.lifecycle = ConnectionLifecycleManager(self.registry)
        self.resets = ResetCoordinator(self.registry, self.store)

    @classmethod
    def create(
        cls, engine: Optional[RulesEngine] = None, starting_fen: str = STARTING_FEN
    ) -> Self:
        """New session in its starting position. Uses chess rules unless another engine is injected."""
        return cls(engine if engine is not None else ChessRulesEngine(starting_fen))

    def close(self) -> None:
        """Drop every binding and the game state."""
        self.registry.clear()
        self.store.reset()

    # --- DOMAIN LAYER API CALLED BY SERVICE ---
    def connect(self, connection_id: ConnectionId) -> Optional[Role]:
        return self.lifecycle.connect(connection_id)

    def disconnect(self, connection_id: ConnectionId) -> Optional[Role]:
        return self.lifecycle.disconnect(connection_id)

    def submit_action(self, connection_id: ConnectionId, action: Action) -> MoveOutcome:
        """
        Attempt a move
        -----

        1. the gate checks the game is running and it is the submitter's turn (raises otherwise)
        2. the store lets the rules engine judge the move against the authoritative position (raises if illegal)
        3. on success the store has already committed the new state
        """
        self.gate.authorize(connection_id)
        return self.store.apply(action)

    def request_reset(self, connection_id: ConnectionId) -> Role:
        return self.resets.request_reset(connection_id)

    def legal_moves(self, square: Optional[str] = None) -> list[str]:
        """Moves the side to move could make. Empty once the game is over."""
        if self.store.evaluation.is_terminal:
            return []
        return self.engine.legal_moves(self.store.state.position, square)

    def role_of(self, connection_id: ConnectionId) -> Optional[Role]:
        return self.registry.role_of(connection_id)

    @property
    def connections(self) -> tuple[ConnectionId, ...]:
        return self.registry.connections

    @property
    def phase(self) -> SessionPhase:
        if self.store.evaluation.is_terminal:
            return SessionPhase.TERMINAL
        if self.registry.is_full:
            return SessionPhase.ACTIVE
        return SessionPhase.FORMING

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            position=self.store.notation,
            evaluation=self.store.evaluation,
            phase=self.phase,
            move_history=[entry.uci for entry in self.store.move_log],
        )
