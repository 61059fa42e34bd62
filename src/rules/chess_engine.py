"""
Implementation of the RulesEngine using python-chess.

The position is a `chess.Board` (including its move stack, needed to detect repetitions).
Boards handed to `apply()` are never mutated: the successor is a copy.
"""

from typing import Optional

import chess

from src.core.exceptions import (
    ConfigurationError,
    IllegalActionError,
    MalformedActionError,
)
from src.core.models import Action, AppliedMove, Evaluation
from src.core.shared_types import PROMOTION_LETTERS, Role, TerminalReason

ROLE_BY_COLOR: dict[chess.Color, Role] = {
    chess.WHITE: Role.FIRST_MOVER,
    chess.BLACK: Role.SECOND_MOVER,
}

PROMOTION_PIECES: dict[str, chess.PieceType] = {
    letter: chess.PIECE_SYMBOLS.index(letter) for letter in PROMOTION_LETTERS
}

# a pawn push to the last rank without a piece choice becomes a queen
DEFAULT_PROMOTION = chess.QUEEN

PROMOTION_RANKS = (0, 7)


def parse_square(name: str) -> chess.Square:
    """Algebraic notation: 'a1' - 'h8'"""
    try:
        return chess.parse_square(name.strip().lower())
    except (ValueError, AttributeError) as exc:
        raise MalformedActionError(
            f"Cannot interpret {name!r} as a valid square name."
        ) from exc


class ChessRulesEngine:
    """Classical chess. Draws (fifty moves, threefold repetition) are claimed automatically."""

    def __init__(self, starting_fen: str = chess.STARTING_FEN) -> None:
        try:
            board = chess.Board(starting_fen)
        except ValueError as exc:
            raise ConfigurationError(
                f"Cannot interpret supplied string as FEN: {starting_fen}"
            ) from exc

        if not board.is_valid():
            raise ConfigurationError(f"Not a playable position: {starting_fen}")
        self.starting_fen = board.fen()

    def initial_position(self) -> chess.Board:
        return chess.Board(self.starting_fen)

    def evaluate(self, position: chess.Board) -> Evaluation:
        reason = self._terminal_reason(position)
        return Evaluation(
            side_to_move=ROLE_BY_COLOR[position.turn],
            in_check=position.is_check(),
            is_terminal=reason != TerminalReason.NONE,
            terminal_reason=reason,
        )

    def apply(self, position: chess.Board, action: Action) -> AppliedMove:
        """
        Attempt the action on a copy of the position
        ----

        1. parse the squares / promotion piece (malformed -> MalformedActionError)
        2. check the move is in the set of legal moves (otherwise IllegalActionError)
        3. describe the move (SAN, captured piece) BEFORE pushing it: both depend on the position before the move
        4. push the move on a copy of the board
        """
        move = self._build_move(position, action)
        if move not in position.legal_moves:
            raise IllegalActionError(f"Move not allowed: {move.uci()}")

        role = ROLE_BY_COLOR[position.turn]
        san = position.san(move)
        captured = self._captured_piece(position, move)

        successor = position.copy()
        successor.push(move)

        return AppliedMove(
            position=successor,
            role=role,
            uci=move.uci(),
            san=san,
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            captured=captured,
        )

    def legal_moves(
        self, position: chess.Board, square: Optional[str] = None
    ) -> list[str]:
        moves = position.legal_moves
        if square is not None:
            from_square = parse_square(square)
            return sorted(m.uci() for m in moves if m.from_square == from_square)
        return sorted(m.uci() for m in moves)

    def to_notation(self, position: chess.Board) -> str:
        return position.fen()

    # -- PRIVATE HELPERS ---
    def _build_move(self, position: chess.Board, action: Action) -> chess.Move:
        from_square = parse_square(action.from_square)
        to_square = parse_square(action.to_square)

        requested: Optional[chess.PieceType] = None
        if action.promotion:
            letter = action.promotion.strip().lower()
            if letter not in PROMOTION_PIECES:
                raise MalformedActionError(
                    f"Cannot promote to {action.promotion!r}. Pick one from {','.join(PROMOTION_PIECES)}"
                )
            requested = PROMOTION_PIECES[letter]

        # the piece choice only counts for a pawn reaching the last rank, and is ignored otherwise
        promotion: Optional[chess.PieceType] = None
        if self._is_pawn_push_to_promotion_square(position, from_square, to_square):
            promotion = requested or DEFAULT_PROMOTION

        return chess.Move(from_square, to_square, promotion=promotion)

    def _is_pawn_push_to_promotion_square(
        self, position: chess.Board, from_square: chess.Square, to_square: chess.Square
    ) -> bool:
        is_pawn_move = position.piece_type_at(from_square) == chess.PAWN
        return is_pawn_move and chess.square_rank(to_square) in PROMOTION_RANKS

    def _captured_piece(self, position: chess.Board, move: chess.Move) -> Optional[str]:
        if position.is_en_passant(move):
            return chess.piece_symbol(chess.PAWN)
        piece_type = position.piece_type_at(move.to_square)
        return chess.piece_symbol(piece_type) if piece_type else None

    def _terminal_reason(self, position: chess.Board) -> TerminalReason:
        """
        Checkmate and stalemate first. The draw rules (insufficient material, fifty moves,
        threefold repetition) only apply when the side to move still has a legal move.
        """
        if position.is_checkmate():
            return TerminalReason.DECISIVE
        if position.is_stalemate():
            return TerminalReason.STALEMATE
        if (
            position.is_insufficient_material()
            or position.is_fifty_moves()
            or position.is_repetition(3)
        ):
            return TerminalReason.DRAW
        return TerminalReason.NONE
