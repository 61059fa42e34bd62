"""Protocol for the rules engine (can implement later for other two-player board games)"""

from typing import Optional, Protocol

from src.core.models import Action, AppliedMove, Evaluation, Position


class RulesEngine(Protocol):
    """Pure state-transition functions over an opaque position. No I/O, no hidden state."""

    def initial_position(self) -> Position:
        """A fresh starting position."""
        ...

    def evaluate(self, position: Position) -> Evaluation:
        """Side to move, check flag and terminal status of the position."""
        ...

    def apply(self, position: Position, action: Action) -> AppliedMove:
        """Successor position for a legal action. Raises IllegalActionError (or MalformedActionError) otherwise.
        The given position must not be modified."""
        ...

    def legal_moves(self, position: Position, square: Optional[str] = None) -> list[str]:
        """Legal moves for the side to move, optionally only those starting on `square`."""
        ...

    def to_notation(self, position: Position) -> str:
        """Serialised position, sent to clients in snapshots."""
        ...
