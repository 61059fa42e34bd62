"""
Boundary layer data model(s).

These objects are passed between the rules engine, the session (domain) layer and the service layer.
The service converts them into wire events (see src/api/models.py); the domain never sees pydantic models.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.shared_types import Role, SessionPhase, TerminalReason

# Opaque to everything but the rules engine
Position = Any


@dataclass(frozen=True)
class Action:
    """A proposed move, already parsed from the wire. Squares in algebraic notation ('e2')."""

    from_square: str
    to_square: str
    promotion: Optional[str] = None


@dataclass(frozen=True)
class Evaluation:
    """What the rules engine says about a position."""

    side_to_move: Role
    in_check: bool
    is_terminal: bool
    terminal_reason: TerminalReason = TerminalReason.NONE

    @property
    def winner(self) -> Optional[Role]:
        """
        Only a decisive result has a winner.
        The side to move is the one that got blocked (mated), so its opponent won.
        """
        if self.terminal_reason != TerminalReason.DECISIVE:
            return None
        return self.side_to_move.opponent


@dataclass(frozen=True)
class AppliedMove:
    """Result of the rules engine applying a legal action: the successor position + a description of the move."""

    position: Position
    role: Role
    uci: str
    san: str
    from_square: str
    to_square: str
    promotion: Optional[str] = None
    captured: Optional[str] = None


@dataclass(frozen=True)
class MoveLogEntry:
    """Immutable record of an accepted action, in applied order."""

    ply: int
    role: Role
    uci: str
    san: str
    from_square: str
    to_square: str
    promotion: Optional[str]
    captured: Optional[str]
    position: str  # notation (FEN) of the position reached by this move


@dataclass(frozen=True)
class MoveOutcome:
    """What the session hands back to the service after committing an accepted action."""

    entry: MoveLogEntry
    evaluation: Evaluation
    became_terminal: bool


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the authoritative state, used for state-snapshot / game-status events."""

    position: str
    evaluation: Evaluation
    phase: SessionPhase
    move_history: list[str] = field(default_factory=list)
