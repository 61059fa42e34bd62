"""Client and server messages exchanged over the WebSocket. Every message is a JSON object with an `event` field."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from src.core.exceptions import InvalidRequestError, MalformedActionError
from src.core.models import Action
from src.core.shared_types import (
    OBSERVER,
    PROMOTION_LETTERS,
    Role,
    SessionPhase,
    TerminalReason,
)


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False

    first_character = value[0]
    second_character = value[1]
    if not (first_character.isalpha() and second_character.isnumeric()):
        return False
    return True


# --- CLIENT -> SERVER ---
class ActionPayload(BaseModel):
    """Proposed move, as the board UI sends it: {"from": "e2", "to": "e4", "promotion": "q"}"""

    model_config = ConfigDict(populate_by_name=True)

    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    promotion: Optional[str] = None

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        value = value.strip().lower()
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @field_validator("promotion")
    @classmethod
    def validate_promotion(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip().lower()
        if value not in PROMOTION_LETTERS:
            raise InvalidRequestError(
                f"Cannot promote to {value!r}. Pick one from {','.join(PROMOTION_LETTERS)}"
            )
        return value

    def to_action(self) -> Action:
        return Action(
            from_square=self.from_square,
            to_square=self.to_square,
            promotion=self.promotion,
        )


class SubmitActionRequest(BaseModel):
    event: Literal["submit-action"]
    action: ActionPayload


class ResetRequest(BaseModel):
    event: Literal["request-reset"]


class LegalMovesRequest(BaseModel):
    event: Literal["request-legal-moves"]
    square: Optional[str] = None

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip().lower()
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value


ClientMessage = Annotated[
    Union[SubmitActionRequest, ResetRequest, LegalMovesRequest],
    Field(discriminator="event"),
]
_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(raw: Any) -> ClientMessage:
    """Fail closed: anything that does not fit one of the client messages becomes a MalformedActionError."""
    try:
        return _client_message_adapter.validate_python(raw)
    except (ValidationError, InvalidRequestError) as exc:
        raise MalformedActionError(f"Cannot interpret message: {raw!r}") from exc


# --- SERVER -> CLIENT ---
class RoleAssignedEvent(BaseModel):
    event: Literal["role-assigned"] = "role-assigned"
    role: Union[Role, Literal["observer"]] = OBSERVER


class StateSnapshotEvent(BaseModel):
    event: Literal["state-snapshot"] = "state-snapshot"
    position: str
    side_to_move: Role
    in_check: bool
    is_terminal: bool
    terminal_reason: TerminalReason
    phase: SessionPhase
    move_history: list[str] = Field(default_factory=list)


class GameStatusEvent(BaseModel):
    event: Literal["game-status"] = "game-status"
    side_to_move: Role
    in_check: bool
    is_terminal: bool
    terminal_reason: TerminalReason
    phase: SessionPhase


class MoveResult(BaseModel):
    """What the rules engine made of the action (mirrors a move log entry)."""

    model_config = ConfigDict(populate_by_name=True)

    ply: int
    role: Role
    uci: str
    san: str
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    promotion: Optional[str] = None
    captured: Optional[str] = None
    position: str


class MoveAppliedEvent(BaseModel):
    event: Literal["move-applied"] = "move-applied"
    action: Any
    result: MoveResult


class MoveRejectedEvent(BaseModel):
    event: Literal["move-rejected"] = "move-rejected"
    action: Any = None
    reason: str


class GameOverEvent(BaseModel):
    event: Literal["game-over"] = "game-over"
    winner: Optional[Role] = None
    reason: TerminalReason


class RoleVacatedEvent(BaseModel):
    event: Literal["role-vacated"] = "role-vacated"
    role: Role


class GameResetEvent(BaseModel):
    event: Literal["game-reset"] = "game-reset"


class ResetRejectedEvent(BaseModel):
    event: Literal["reset-rejected"] = "reset-rejected"
    reason: str


class LegalMovesEvent(BaseModel):
    event: Literal["legal-moves"] = "legal-moves"
    square: Optional[str] = None
    moves: list[str] = Field(default_factory=list)


ServerMessage = Union[
    RoleAssignedEvent,
    StateSnapshotEvent,
    GameStatusEvent,
    MoveAppliedEvent,
    MoveRejectedEvent,
    GameOverEvent,
    RoleVacatedEvent,
    GameResetEvent,
    ResetRejectedEvent,
    LegalMovesEvent,
]


def to_wire(message: ServerMessage) -> dict[str, Any]:
    """JSON-ready dict, with field aliases ('from'/'to') applied."""
    return message.model_dump(mode="json", by_alias=True)
