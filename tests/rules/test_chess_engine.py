"""Unit tests for src/rules/chess_engine.py"""

import chess
import pytest

from src.core.exceptions import ConfigurationError, IllegalActionError, MalformedActionError
from src.core.models import Action
from src.core.shared_types import PROMOTION_LETTERS, Role, TerminalReason
from src.rules.chess_engine import PROMOTION_PIECES, ChessRulesEngine

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
FOOLS_MATE = [("f2", "f3"), ("e7", "e5"), ("g2", "g4"), ("d8", "h4")]


def play(engine: ChessRulesEngine, moves: list[tuple[str, str]], position=None):
    """Apply a sequence of (from, to) moves, starting from the initial position unless given."""
    position = position if position is not None else engine.initial_position()
    for from_square, to_square in moves:
        position = engine.apply(position, Action(from_square, to_square)).position
    return position


# -- CREATION --
def test_initial_position(engine: ChessRulesEngine) -> None:
    position = engine.initial_position()
    evaluation = engine.evaluate(position)

    assert engine.to_notation(position) == STARTING_FEN
    assert evaluation.side_to_move == Role.FIRST_MOVER
    assert not evaluation.in_check
    assert not evaluation.is_terminal
    assert evaluation.terminal_reason == TerminalReason.NONE


def test_custom_starting_position() -> None:
    fen = "4k3/8/8/8/8/8/4P3/4K3 b - - 0 1"
    engine = ChessRulesEngine(fen)
    position = engine.initial_position()
    assert engine.to_notation(position) == fen
    assert engine.evaluate(position).side_to_move == Role.SECOND_MOVER


@pytest.mark.parametrize(
    "invalid_fen",
    [
        "not a fen at all",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBN w KQkq - 0 1",  # rank too short
        "8/8/8/8/8/8/8/8 w - - 0 1",  # no kings: not a playable position
    ],
)
def test_invalid_starting_position(invalid_fen: str) -> None:
    with pytest.raises(ConfigurationError):
        _ = ChessRulesEngine(invalid_fen)


# -- APPLYING ACTIONS --
def test_apply_legal_move(engine: ChessRulesEngine) -> None:
    """Successor reflects the move, the original position is left alone."""
    position = engine.initial_position()
    applied = engine.apply(position, Action("e2", "e4"))

    assert applied.role == Role.FIRST_MOVER
    assert applied.uci == "e2e4"
    assert applied.san == "e4"
    assert applied.from_square == "e2"
    assert applied.to_square == "e4"
    assert applied.promotion is None
    assert applied.captured is None

    assert engine.evaluate(applied.position).side_to_move == Role.SECOND_MOVER
    assert engine.to_notation(position) == STARTING_FEN


@pytest.mark.parametrize(
    "from_square, to_square",
    [
        ("e2", "e5"),  # pawn cannot move three squares
        ("e3", "e4"),  # no piece on the square
        ("e7", "e5"),  # opponent's piece
        ("b1", "d2"),  # own pawn on the target square
    ],
)
def test_apply_illegal_move(
    engine: ChessRulesEngine, from_square: str, to_square: str
) -> None:
    position = engine.initial_position()
    with pytest.raises(IllegalActionError):
        _ = engine.apply(position, Action(from_square, to_square))
    assert engine.to_notation(position) == STARTING_FEN


@pytest.mark.parametrize(
    "action",
    [
        Action("z9", "e4"),
        Action("e2", "e44"),
        Action("", "e4"),
        Action("e7", "e8", promotion="k"),
    ],
)
def test_apply_malformed_move(engine: ChessRulesEngine, action: Action) -> None:
    """Malformed actions are a special kind of illegal action."""
    with pytest.raises(MalformedActionError):
        _ = engine.apply(engine.initial_position(), action)


def test_capture_is_described(engine: ChessRulesEngine) -> None:
    position = play(engine, [("e2", "e4"), ("d7", "d5")])
    applied = engine.apply(position, Action("e4", "d5"))
    assert applied.captured == "p"
    assert applied.san == "exd5"


def test_en_passant_capture_is_described() -> None:
    engine = ChessRulesEngine("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 1")
    applied = engine.apply(engine.initial_position(), Action("e5", "d6"))
    assert applied.captured == "p"
    assert applied.san == "exd6"


def test_pawn_promotes_to_queen_by_default() -> None:
    engine = ChessRulesEngine("8/P6k/8/8/8/8/8/K7 w - - 0 1")
    applied = engine.apply(engine.initial_position(), Action("a7", "a8"))
    assert applied.uci == "a7a8q"
    assert applied.promotion == "q"
    assert applied.san == "a8=Q"


def test_pawn_promotes_to_requested_piece() -> None:
    engine = ChessRulesEngine("8/P6k/8/8/8/8/8/K7 w - - 0 1")
    applied = engine.apply(engine.initial_position(), Action("a7", "a8", promotion="N"))
    assert applied.uci == "a7a8n"
    assert applied.promotion == "n"


@pytest.mark.parametrize(
    "action, uci",
    [
        (Action("e2", "e4", promotion="q"), "e2e4"),  # pawn, but not to the last rank
        (Action("g1", "f3", promotion="Q"), "g1f3"),  # not a pawn at all
    ],
)
def test_piece_choice_is_ignored_without_promotion(
    engine: ChessRulesEngine, action: Action, uci: str
) -> None:
    """Clients may send a piece choice with every move; it only matters for promotions."""
    applied = engine.apply(engine.initial_position(), action)
    assert applied.uci == uci
    assert applied.promotion is None


# -- TERMINAL STATES --
def test_checkmate_is_decisive(engine: ChessRulesEngine) -> None:
    evaluation = engine.evaluate(play(engine, FOOLS_MATE))

    assert evaluation.is_terminal
    assert evaluation.in_check
    assert evaluation.terminal_reason == TerminalReason.DECISIVE
    assert evaluation.side_to_move == Role.FIRST_MOVER
    assert evaluation.winner == Role.SECOND_MOVER


def test_stalemate() -> None:
    engine = ChessRulesEngine("7k/8/6K1/8/8/8/8/5Q2 w - - 0 1")
    evaluation = engine.evaluate(play(engine, [("f1", "f7")]))

    assert evaluation.is_terminal
    assert not evaluation.in_check
    assert evaluation.terminal_reason == TerminalReason.STALEMATE
    assert evaluation.winner is None


def test_insufficient_material_is_a_draw() -> None:
    engine = ChessRulesEngine("8/8/8/8/8/8/k6K/7r w - - 0 1")
    evaluation = engine.evaluate(play(engine, [("h2", "h1")]))

    assert evaluation.is_terminal
    assert evaluation.terminal_reason == TerminalReason.DRAW
    assert evaluation.winner is None


def test_threefold_repetition_is_a_draw(engine: ChessRulesEngine) -> None:
    shuffle = [("g1", "f3"), ("g8", "f6"), ("f3", "g1"), ("f6", "g8")]
    position = play(engine, shuffle)
    assert not engine.evaluate(position).is_terminal

    position = play(engine, shuffle, position)
    evaluation = engine.evaluate(position)
    assert evaluation.is_terminal
    assert evaluation.terminal_reason == TerminalReason.DRAW


def test_fifty_move_rule_is_a_draw() -> None:
    engine = ChessRulesEngine("4k3/8/8/8/8/8/8/R3K3 w - - 99 80")
    evaluation = engine.evaluate(play(engine, [("a1", "a2")]))
    assert evaluation.terminal_reason == TerminalReason.DRAW


# -- LEGAL MOVES --
def test_legal_moves_of_starting_position(engine: ChessRulesEngine) -> None:
    moves = engine.legal_moves(engine.initial_position())
    assert len(moves) == 20
    assert moves == sorted(moves)


def test_legal_moves_from_square(engine: ChessRulesEngine) -> None:
    assert engine.legal_moves(engine.initial_position(), "e2") == ["e2e3", "e2e4"]
    assert engine.legal_moves(engine.initial_position(), "e7") == []


def test_legal_moves_from_invalid_square(engine: ChessRulesEngine) -> None:
    with pytest.raises(MalformedActionError):
        _ = engine.legal_moves(engine.initial_position(), "x0")


def test_position_is_a_python_chess_board(engine: ChessRulesEngine) -> None:
    """Move stack is carried along (needed for repetition detection)."""
    position = play(engine, [("e2", "e4"), ("e7", "e5")])
    assert isinstance(position, chess.Board)
    assert [move.uci() for move in position.move_stack] == ["e2e4", "e7e5"]


def test_promotion_pieces_match_wire_letters() -> None:
    assert tuple(PROMOTION_PIECES) == PROMOTION_LETTERS
    assert PROMOTION_PIECES == {
        "q": chess.QUEEN,
        "r": chess.ROOK,
        "b": chess.BISHOP,
        "n": chess.KNIGHT,
    }
