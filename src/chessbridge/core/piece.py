"""Piece value object."""

from __future__ import annotations

from dataclasses import dataclass

from chessbridge.core.enums import Color, PieceType

# FEN character ↔ (Color, PieceType)
_CHAR_MAP: dict[str, tuple[Color, PieceType]] = {
    "P": (Color.WHITE, PieceType.PAWN),
    "N": (Color.WHITE, PieceType.KNIGHT),
    "B": (Color.WHITE, PieceType.BISHOP),
    "R": (Color.WHITE, PieceType.ROOK),
    "Q": (Color.WHITE, PieceType.QUEEN),
    "K": (Color.WHITE, PieceType.KING),
    "p": (Color.BLACK, PieceType.PAWN),
    "n": (Color.BLACK, PieceType.KNIGHT),
    "b": (Color.BLACK, PieceType.BISHOP),
    "r": (Color.BLACK, PieceType.ROOK),
    "q": (Color.BLACK, PieceType.QUEEN),
    "k": (Color.BLACK, PieceType.KING),
}

_UNICODE: dict[tuple[Color, PieceType], str] = {
    (Color.WHITE, PieceType.PAWN): "♙",
    (Color.WHITE, PieceType.KNIGHT): "♘",
    (Color.WHITE, PieceType.BISHOP): "♗",
    (Color.WHITE, PieceType.ROOK): "♖",
    (Color.WHITE, PieceType.QUEEN): "♕",
    (Color.WHITE, PieceType.KING): "♔",
    (Color.BLACK, PieceType.PAWN): "♟",
    (Color.BLACK, PieceType.KNIGHT): "♞",
    (Color.BLACK, PieceType.BISHOP): "♝",
    (Color.BLACK, PieceType.ROOK): "♜",
    (Color.BLACK, PieceType.QUEEN): "♛",
    (Color.BLACK, PieceType.KING): "♚",
}

_FEN_CHARS: dict[tuple[Color, PieceType], str] = {v: k for k, v in _CHAR_MAP.items()}


@dataclass(frozen=True, slots=True)
class Piece:
    """Immutable value object representing one of the 12 chess pieces."""

    color: Color
    piece_type: PieceType

    # ── Serialisation ────────────────────────────────────────────────────

    def __str__(self) -> str:
        """FEN character (uppercase = white, lowercase = black)."""
        return self.char

    @property
    def char(self) -> str:
        return _FEN_CHARS[(self.color, self.piece_type)]

    @classmethod
    def from_char(cls, char: str) -> Piece:
        """Create piece from FEN character, e.g. 'N' → white knight."""
        try:
            color, ptype = _CHAR_MAP[char]
        except KeyError:
            raise ValueError(f"Invalid piece character: {char!r}") from None
        return cls(color, ptype)

    @classmethod
    def is_piece_char(cls, char: str) -> bool:
        return char in _CHAR_MAP

    # ── Descriptive helpers ──────────────────────────────────────────────

    @property
    def name(self) -> str:
        """Lower-case type name, e.g. ``'knight'``."""
        return str(self.piece_type)

    @property
    def color_name(self) -> str:
        return str(self.color)

    @property
    def is_white(self) -> bool:
        return self.color == Color.WHITE

    @property
    def symbol(self) -> str:
        """Unicode chess symbol, e.g. ♞."""
        return _UNICODE[(self.color, self.piece_type)]


WHITE_KING = Piece(Color.WHITE, PieceType.KING)
WHITE_QUEEN = Piece(Color.WHITE, PieceType.QUEEN)
WHITE_ROOK = Piece(Color.WHITE, PieceType.ROOK)
WHITE_BISHOP = Piece(Color.WHITE, PieceType.BISHOP)
WHITE_KNIGHT = Piece(Color.WHITE, PieceType.KNIGHT)
WHITE_PAWN = Piece(Color.WHITE, PieceType.PAWN)
BLACK_KING = Piece(Color.BLACK, PieceType.KING)
BLACK_QUEEN = Piece(Color.BLACK, PieceType.QUEEN)
BLACK_ROOK = Piece(Color.BLACK, PieceType.ROOK)
BLACK_BISHOP = Piece(Color.BLACK, PieceType.BISHOP)
BLACK_KNIGHT = Piece(Color.BLACK, PieceType.KNIGHT)
BLACK_PAWN = Piece(Color.BLACK, PieceType.PAWN)

ALL_PIECES: tuple[Piece, ...] = tuple(Piece.from_char(c) for c in _CHAR_MAP)
