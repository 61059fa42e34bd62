"""
The Game State Store holds the single authoritative game state of the session.

It is only written by:
* `apply()`, after the Authority Gate granted the submitter the right to act
* `reset()`, called by the Reset Coordinator
"""

from dataclasses import dataclass, field

from src.core.models import Action, Evaluation, MoveLogEntry, MoveOutcome, Position
from src.rules.engine import RulesEngine


@dataclass(frozen=True)
class GameState:
    position: Position
    evaluation: Evaluation
    move_log: tuple[MoveLogEntry, ...] = field(default_factory=tuple)


class GameStateStore:
    def __init__(self, engine: RulesEngine) -> None:
        self.engine = engine
        self._state = self._initial_state()

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def evaluation(self) -> Evaluation:
        return self._state.evaluation

    @property
    def move_log(self) -> tuple[MoveLogEntry, ...]:
        return self._state.move_log

    @property
    def notation(self) -> str:
        return self.engine.to_notation(self._state.position)

    def apply(self, action: Action) -> MoveOutcome:
        """
        Let the rules engine judge the action against the current position
        ----

        * illegal: the engine raises and nothing here changes
        * legal: the state is replaced in one assignment (position, evaluation of the NEW position, move log)
        """
        applied = self.engine.apply(self._state.position, action)
        evaluation = self.engine.evaluate(applied.position)

        entry = MoveLogEntry(
            ply=len(self._state.move_log) + 1,
            role=applied.role,
            uci=applied.uci,
            san=applied.san,
            from_square=applied.from_square,
            to_square=applied.to_square,
            promotion=applied.promotion,
            captured=applied.captured,
            position=self.engine.to_notation(applied.position),
        )

        was_terminal = self._state.evaluation.is_terminal
        self._state = GameState(
            position=applied.position,
            evaluation=evaluation,
            move_log=(*self._state.move_log, entry),
        )
        return MoveOutcome(
            entry=entry,
            evaluation=evaluation,
            became_terminal=evaluation.is_terminal and not was_terminal,
        )

    def reset(self) -> None:
        """Back to the starting position. Move log is cleared."""
        self._state = self._initial_state()

    def _initial_state(self) -> GameState:
        position = self.engine.initial_position()
        return GameState(position=position, evaluation=self.engine.evaluate(position))
