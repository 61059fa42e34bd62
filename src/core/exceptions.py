"""
Custom exceptions shared across layers.

The service layer catches `GameError` (and subclasses) per command and converts them into events for the submitter only.
Anything that is not a `GameError` is a programming error and is allowed to propagate.
"""


class GameError(Exception):
    """Top-level exception for anything that goes wrong while playing a game."""

    reason: str = "error"


# --- SESSION / AUTHORITY ---
class SessionError(GameError):
    """The session refuses a request (independent of the rules of the game)."""


class UnauthorizedActionError(SessionError):
    """The submitter does not currently hold the right to act."""

    reason = "unauthorized"


class NotAParticipantError(UnauthorizedActionError):
    """Observers (connections without a role) cannot move or reset."""

    reason = "not a participant"


class NotYourTurnError(UnauthorizedActionError):
    reason = "not your turn"


class GameOverError(UnauthorizedActionError):
    """The game reached a terminal state. Only a reset brings it back."""

    reason = "game over"


# --- RULES ---
class IllegalActionError(GameError):
    """The rules engine does not allow the action in the current position."""

    reason = "illegal action"


class MalformedActionError(IllegalActionError):
    """Could not even interpret the action. Treated exactly like an illegal one."""

    reason = "malformed action"


# --- BOUNDARIES ---
class InvalidRequestError(GameError):
    """Raised by the wire models when a request is structurally invalid."""

    reason = "invalid request"


class ConfigurationError(GameError):
    """Invalid process configuration (environment variables)."""

    reason = "invalid configuration"
