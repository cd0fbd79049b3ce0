"""FEN parsing, validation and serialization."""

from __future__ import annotations

import re

from chessbridge.core.board import Board
from chessbridge.core.enums import CastlingRights, Color
from chessbridge.core.piece import Piece
from chessbridge.core.types import Position
from chessbridge.errors import MalformedFen

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_CASTLING_RE = re.compile(r"^[KQkq]+$")
_EN_PASSANT_RE = re.compile(r"^[a-h][36]$")
_CASTLING_CHARS: dict[str, CastlingRights] = {
    "K": CastlingRights.WHITE_KINGSIDE,
    "Q": CastlingRights.WHITE_QUEENSIDE,
    "k": CastlingRights.BLACK_KINGSIDE,
    "q": CastlingRights.BLACK_QUEENSIDE,
}
_FIELD_DEFAULTS = ("", "w", "-", "-", "0", "1")


def _fields(fen: str) -> list[str]:
    if not isinstance(fen, str) or not fen.strip():
        raise MalformedFen(f"Invalid FEN (empty): {fen!r}")
    parts = fen.split()
    if len(parts) > 6:
        raise MalformedFen(f"Invalid FEN (more than 6 fields): {fen!r}")
    return parts + list(_FIELD_DEFAULTS[len(parts) :])


def validate_fen(fen: str) -> None:
    """Raise :class:`MalformedFen` if *fen* is not well-formed."""
    placement, side_part, castling_part, ep_part, halfmove, fullmove = _fields(fen)

    # 1. Piece placement
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise MalformedFen(f"Invalid FEN board (must contain 8 ranks): {fen!r}")
    for rank_text in ranks:
        squares = 0
        for ch in rank_text:
            if ch.isdigit():
                squares += int(ch)
            elif Piece.is_piece_char(ch):
                squares += 1
            else:
                raise MalformedFen(f"Invalid FEN piece character {ch!r}: {fen!r}")
        if squares != 8:
            raise MalformedFen(f"Invalid FEN rank width {rank_text!r}: {fen!r}")

    # 2. Side to move
    if side_part not in ("w", "b"):
        raise MalformedFen(f"Invalid FEN side-to-move field: {side_part!r}")

    # 3. Castling
    if castling_part != "-" and not _CASTLING_RE.match(castling_part):
        raise MalformedFen(f"Invalid FEN castling field: {castling_part!r}")

    # 4. En passant
    if ep_part != "-" and not _EN_PASSANT_RE.match(ep_part):
        raise MalformedFen(f"Invalid FEN en-passant square: {ep_part!r}")

    # 5–6. Clocks
    if not halfmove.isdigit():
        raise MalformedFen(f"Invalid FEN halfmove clock: {halfmove!r}")
    if not fullmove.isdigit() or int(fullmove) < 1:
        raise MalformedFen(f"Invalid FEN fullmove number: {fullmove!r}")


def is_valid_fen(fen: str) -> bool:
    """Boolean form of :func:`validate_fen`."""
    try:
        validate_fen(fen)
    except MalformedFen:
        return False
    return True


def board_from_fen(fen: str) -> Board:
    """Parse a FEN string into a new :class:`Board`."""
    validate_fen(fen)
    placement, side_part, castling_part, ep_part, halfmove, fullmove = _fields(fen)

    board = Board()
    for rank_idx, rank_text in enumerate(placement.split("/")):
        rank = 7 - rank_idx
        file = 0
        for ch in rank_text:
            if ch.isdigit():
                file += int(ch)
            else:
                board[Position(file, rank)] = Piece.from_char(ch)
                file += 1

    board.side_to_move = Color.WHITE if side_part == "w" else Color.BLACK

    castling = CastlingRights.NONE
    if castling_part != "-":
        for ch in castling_part:
            castling |= _CASTLING_CHARS[ch]
    board.castling = castling

    board.en_passant = None if ep_part == "-" else Position.from_algebraic(ep_part)
    board.halfmove_clock = int(halfmove)
    board.fullmove_number = int(fullmove)
    return board


def board_to_fen(board: Board) -> str:
    """Serialise a :class:`Board` to FEN."""
    # 1. Board
    rows: list[str] = []
    for rank in range(7, -1, -1):
        empty = 0
        row = ""
        for file in range(8):
            piece = board[Position(file, rank)]
            if piece is None:
                empty += 1
            else:
                if empty:
                    row += str(empty)
                    empty = 0
                row += str(piece)
        if empty:
            row += str(empty)
        rows.append(row)
    board_str = "/".join(rows)

    # 2. Side
    side_str = board.side_to_move.fen_char

    # 3. Castling
    castling_str = "".join(
        ch for ch, right in _CASTLING_CHARS.items() if board.castling & right
    )
    if not castling_str:
        castling_str = "-"

    # 4. En passant
    ep_str = board.en_passant.algebraic if board.en_passant is not None else "-"

    return (
        f"{board_str} {side_str} {castling_str} {ep_str} "
        f"{board.halfmove_clock} {board.fullmove_number}"
    )


def canonical_fen(fen: str) -> str:
    """Normalise *fen* (default missing fields, collapse whitespace)."""
    return board_to_fen(board_from_fen(fen))


def position_key(fen: str) -> str:
    """Board, side, castling and en-passant fields: the repetition key."""
    parts = fen.split()
    return " ".join(parts[:4])
