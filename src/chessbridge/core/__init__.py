"""Core domain layer: board, pieces, moves and notation.

No legality rules live here; legal moves come from the external engine.

Quick start::

    from chessbridge.core import Board, Move, board_from_fen, STARTING_FEN

    board = board_from_fen(STARTING_FEN)
    board.apply_move(Move.from_uci("e2e4", board))
    print(board.fen())
"""

from chessbridge.core.board import Board
from chessbridge.core.enums import CastlingRights, Color, PieceType
from chessbridge.core.move import Move, is_uci_token, parse_uci_token
from chessbridge.core.notation import (
    STARTING_FEN,
    board_from_fen,
    board_to_fen,
    is_valid_fen,
    validate_fen,
)
from chessbridge.core.piece import Piece
from chessbridge.core.types import Position, parse_square, square_name

__all__ = [
    # Enums / flags
    "CastlingRights",
    "Color",
    "PieceType",
    # Value types
    "Piece",
    "Position",
    "parse_square",
    "square_name",
    # Domain objects
    "Board",
    "Move",
    "is_uci_token",
    "parse_uci_token",
    # Notation
    "STARTING_FEN",
    "board_from_fen",
    "board_to_fen",
    "is_valid_fen",
    "validate_fen",
]
