"""
Type definitions used across layers
"""

from enum import StrEnum

# Opaque token handed out by the transport layer for each connection
ConnectionId = str

# Wire marker for a connection that holds no role
OBSERVER = "observer"


class Role(StrEnum):
    """The two seats at the board. First mover plays the white pieces."""

    FIRST_MOVER = "first-mover"
    SECOND_MOVER = "second-mover"

    @property
    def opponent(self) -> "Role":
        return Role.SECOND_MOVER if self == Role.FIRST_MOVER else Role.FIRST_MOVER


# Priority in which vacant roles are handed out to new connections
ROLE_PRIORITY: tuple[Role, ...] = (Role.FIRST_MOVER, Role.SECOND_MOVER)

# Pieces a pawn may promote to, as lowercase piece letters
PROMOTION_LETTERS: tuple[str, ...] = ("q", "r", "b", "n")


class TerminalReason(StrEnum):
    NONE = "none"
    DECISIVE = "decisive"
    STALEMATE = "stalemate"
    DRAW = "draw"
    TIMEOUT = "timeout"


class SessionPhase(StrEnum):
    FORMING = "forming"
    ACTIVE = "active"
    TERMINAL = "terminal"
