"""Move value object and UCI move-token helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from chessbridge.core.enums import PieceType
from chessbridge.core.piece import Piece
from chessbridge.core.types import Position
from chessbridge.errors import InvalidMoveToken

if TYPE_CHECKING:
    from chessbridge.core.board import Board

_UCI_TOKEN_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")

_PROMO_TYPES: dict[str, PieceType] = {
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
}
_PROMO_CHARS: dict[PieceType, str] = {v: k for k, v in _PROMO_TYPES.items()}

_SAN_PIECE: dict[PieceType, str] = {
    PieceType.KNIGHT: "N",
    PieceType.BISHOP: "B",
    PieceType.ROOK: "R",
    PieceType.QUEEN: "Q",
    PieceType.KING: "K",
}


def is_uci_token(text: str) -> bool:
    """Whether *text* has UCI move shape (``e2e4``, ``e7e8q``)."""
    return isinstance(text, str) and _UCI_TOKEN_RE.match(text) is not None


def parse_uci_token(text: str) -> tuple[Position, Position, PieceType | None]:
    """Split a UCI token into origin, destination and promotion type."""
    if not is_uci_token(text):
        raise InvalidMoveToken(f"Invalid UCI move token: {text!r}")
    promotion = _PROMO_TYPES[text[4]] if len(text) == 5 else None
    return (
        Position.from_algebraic(text[0:2]),
        Position.from_algebraic(text[2:4]),
        promotion,
    )


def promotion_char(piece_type: PieceType) -> str:
    """UCI suffix letter for a promotion piece type."""
    try:
        return _PROMO_CHARS[piece_type]
    except KeyError:
        raise ValueError(f"Cannot promote to {piece_type.name}") from None


@dataclass(frozen=True, slots=True)
class Move:
    """Immutable record of a single move.

    Equality and hashing consider only ``(from_sq, to_sq, promotion)`` so that
    two records of the same move with different bookkeeping compare equal.
    """

    from_sq: Position
    to_sq: Position
    piece: Piece | None = field(default=None, compare=False)
    captured: Piece | None = field(default=None, compare=False)
    promotion: Piece | None = None
    is_castling: bool = field(default=False, compare=False)
    is_en_passant: bool = field(default=False, compare=False)
    is_check: bool = field(default=False, compare=False)
    is_checkmate: bool = field(default=False, compare=False)

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def from_uci(cls, token: str, board: Board) -> Move:
        """Classify *token* against *board* and build a full move record."""
        from_sq, to_sq, promo_type = parse_uci_token(token)
        piece = board[from_sq]
        captured = board[to_sq]

        promotion: Piece | None = None
        if promo_type is not None:
            color = piece.color if piece is not None else board.side_to_move
            promotion = Piece(color, promo_type)

        is_castling = False
        is_en_passant = False
        if piece is not None and piece.piece_type == PieceType.KING:
            is_castling = abs(to_sq.file - from_sq.file) == 2
        elif piece is not None and piece.piece_type == PieceType.PAWN:
            if from_sq.file != to_sq.file and captured is None:
                is_en_passant = True
                # The captured pawn sits beside the mover, on its origin rank.
                captured = board[Position(to_sq.file, from_sq.rank)]

        return cls(
            from_sq,
            to_sq,
            piece=piece,
            captured=captured,
            promotion=promotion,
            is_castling=is_castling,
            is_en_passant=is_en_passant,
        )

    def with_check(self, check: bool, checkmate: bool = False) -> Move:
        """Copy of this move with check/checkmate flags set."""
        return replace(self, is_check=check or checkmate, is_checkmate=checkmate)

    # ── Classification ───────────────────────────────────────────────────

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_promotion(self) -> bool:
        return self.promotion is not None

    @property
    def is_kingside_castle(self) -> bool:
        return self.is_castling and self.to_sq.file > self.from_sq.file

    @property
    def is_queenside_castle(self) -> bool:
        return self.is_castling and self.to_sq.file < self.from_sq.file

    # ── Notation ─────────────────────────────────────────────────────────

    @property
    def uci(self) -> str:
        """UCI long-algebraic notation."""
        base = f"{self.from_sq}{self.to_sq}"
        if self.promotion is not None:
            base += _PROMO_CHARS[self.promotion.piece_type]
        return base

    @property
    def san(self) -> str:
        """Short algebraic rendering for move lists.

        Disambiguation between identical pieces is not attempted because no
        local move generation exists.
        """
        if self.is_castling:
            text = "O-O" if self.is_kingside_castle else "O-O-O"
        else:
            parts: list[str] = []
            is_pawn = self.piece is not None and self.piece.piece_type == PieceType.PAWN
            if self.piece is not None and not is_pawn:
                parts.append(_SAN_PIECE[self.piece.piece_type])
            if self.is_capture or self.is_en_passant:
                if is_pawn:
                    parts.append(self.from_sq.file_char)
                parts.append("x")
            parts.append(self.to_sq.algebraic)
            if self.promotion is not None:
                parts.append("=" + _SAN_PIECE[self.promotion.piece_type])
            text = "".join(parts)

        if self.is_checkmate:
            return text + "#"
        if self.is_check:
            return text + "+"
        return text

    def __str__(self) -> str:
        return self.uci
