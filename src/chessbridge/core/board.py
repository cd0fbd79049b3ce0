"""Board - piece placement on an 8x8 grid plus side to move, castling and clocks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chessbridge.core.enums import CastlingRights, Color, PieceType
from chessbridge.core.piece import Piece
from chessbridge.core.types import Position

if TYPE_CHECKING:
    from chessbridge.core.move import Move

_BACK_RANK = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


class Board:
    """Mutable 64-square board with the full FEN state.

    Legality is never checked here; :meth:`apply_move` trusts its caller.
    """

    __slots__ = (
        "_squares",
        "side_to_move",
        "castling",
        "en_passant",
        "halfmove_clock",
        "fullmove_number",
    )

    def __init__(self) -> None:
        self._squares: list[Piece | None] = [None] * 64
        self.side_to_move = Color.WHITE
        self.castling = CastlingRights.NONE
        self.en_passant: Position | None = None
        self.halfmove_clock = 0
        self.fullmove_number = 1

    # -- Element access -----------------------------------------------------

    def __getitem__(self, pos: Position) -> Piece | None:
        return self._squares[pos.index]

    def __setitem__(self, pos: Position, piece: Piece | None) -> None:
        self._squares[pos.index] = piece

    def piece_at(self, pos: Position) -> Piece | None:
        return self._squares[pos.index]

    def set_piece(self, pos: Position, piece: Piece | None) -> None:
        self._squares[pos.index] = piece

    def is_empty(self, pos: Position) -> bool:
        return self._squares[pos.index] is None

    # -- Query helpers ------------------------------------------------------

    def find_king(self, color: Color) -> Position | None:
        """Square of *color*'s king, or ``None`` when the FEN had none."""
        king = Piece(color, PieceType.KING)
        for index, piece in enumerate(self._squares):
            if piece == king:
                return Position.from_index(index)
        return None

    def pieces(self, color: Color) -> list[tuple[Position, Piece]]:
        """All ``(square, piece)`` pairs for *color*."""
        return [
            (Position.from_index(index), piece)
            for index, piece in enumerate(self._squares)
            if piece is not None and piece.color == color
        ]

    def can_castle(self, color: Color, *, kingside: bool) -> bool:
        return bool(self.castling & CastlingRights.for_side(color, kingside=kingside))

    @property
    def white_kingside(self) -> bool:
        return bool(self.castling & CastlingRights.WHITE_KINGSIDE)

    @property
    def white_queenside(self) -> bool:
        return bool(self.castling & CastlingRights.WHITE_QUEENSIDE)

    @property
    def black_kingside(self) -> bool:
        return bool(self.castling & CastlingRights.BLACK_KINGSIDE)

    @property
    def black_queenside(self) -> bool:
        return bool(self.castling & CastlingRights.BLACK_QUEENSIDE)

    @property
    def is_white_to_move(self) -> bool:
        return self.side_to_move == Color.WHITE

    # -- Move application ---------------------------------------------------

    _ROOK_CORNERS: dict[Position, CastlingRights] = {
        Position(0, 0): CastlingRights.WHITE_QUEENSIDE,
        Position(7, 0): CastlingRights.WHITE_KINGSIDE,
        Position(0, 7): CastlingRights.BLACK_QUEENSIDE,
        Position(7, 7): CastlingRights.BLACK_KINGSIDE,
    }

    def apply_move(self, move: Move) -> None:
        """Apply *move* in place. The move must already be known to be legal."""
        from_sq, to_sq = move.from_sq, move.to_sq
        piece = self[from_sq]
        if piece is None:
            raise ValueError(f"No piece on {from_sq}")

        is_pawn = piece.piece_type == PieceType.PAWN
        captured = self[to_sq]

        # Lift piece from origin
        self[from_sq] = None

        # En passant: the captured pawn sits on the mover's rank, not on to_sq
        is_en_passant = move.is_en_passant or (
            is_pawn and from_sq.file != to_sq.file and captured is None
        )
        if is_en_passant:
            ep_capture_sq = Position(to_sq.file, from_sq.rank)
            captured = self[ep_capture_sq]
            self[ep_capture_sq] = None

        # Slide the rook for castling
        is_castling = move.is_castling or (
            piece.piece_type == PieceType.KING and abs(to_sq.file - from_sq.file) == 2
        )
        if is_castling:
            r = from_sq.rank
            if to_sq.file > from_sq.file:
                rook_from, rook_to = Position(7, r), Position(5, r)
            else:
                rook_from, rook_to = Position(0, r), Position(3, r)
            self[rook_to] = self[rook_from]
            self[rook_from] = None

        # Place piece (handle promotion)
        self[to_sq] = move.promotion if move.promotion is not None else piece

        self._update_castling(from_sq, to_sq, piece)

        # En passant target for the opponent
        if is_pawn and abs(to_sq.rank - from_sq.rank) == 2:
            self.en_passant = Position(from_sq.file, (from_sq.rank + to_sq.rank) // 2)
        else:
            self.en_passant = None

        # Clocks
        if is_pawn or captured is not None or move.is_capture:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1

        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1

        self.side_to_move = self.side_to_move.opposite

    def _update_castling(self, from_sq: Position, to_sq: Position, piece: Piece) -> None:
        if piece.piece_type == PieceType.KING:
            if piece.color == Color.WHITE:
                self.castling &= ~CastlingRights.WHITE_BOTH
            else:
                self.castling &= ~CastlingRights.BLACK_BOTH

        for sq in (from_sq, to_sq):
            if sq in self._ROOK_CORNERS:
                self.castling &= ~self._ROOK_CORNERS[sq]

    # -- FEN ----------------------------------------------------------------

    def load_fen(self, fen: str) -> None:
        """Replace the whole board state with the one described by *fen*."""
        from chessbridge.core.notation.fen import board_from_fen

        other = board_from_fen(fen)
        self._copy_from(other)

    def fen(self) -> str:
        from chessbridge.core.notation.fen import board_to_fen

        return board_to_fen(self)

    # -- Mutation / copying -------------------------------------------------

    def copy(self) -> Board:
        b = Board()
        b._copy_from(self)
        return b

    def _copy_from(self, other: Board) -> None:
        self._squares = other._squares.copy()
        self.side_to_move = other.side_to_move
        self.castling = other.castling
        self.en_passant = other.en_passant
        self.halfmove_clock = other.halfmove_clock
        self.fullmove_number = other.fullmove_number

    def clear(self) -> None:
        self._squares = [None] * 64
        self.side_to_move = Color.WHITE
        self.castling = CastlingRights.NONE
        self.en_passant = None
        self.halfmove_clock = 0
        self.fullmove_number = 1

    def reset(self) -> None:
        """Restore the standard starting position."""
        self._copy_from(Board.initial())

    # -- Factory ------------------------------------------------------------

    @classmethod
    def initial(cls) -> Board:
        """Standard starting position."""
        b = cls()
        for f in range(8):
            b[Position(f, 1)] = Piece(Color.WHITE, PieceType.PAWN)
            b[Position(f, 6)] = Piece(Color.BLACK, PieceType.PAWN)
        for f, pt in enumerate(_BACK_RANK):
            b[Position(f, 0)] = Piece(Color.WHITE, pt)
            b[Position(f, 7)] = Piece(Color.BLACK, pt)
        b.castling = CastlingRights.ALL
        return b

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self._squares == other._squares
            and self.side_to_move == other.side_to_move
            and self.castling == other.castling
            and self.en_passant == other.en_passant
            and self.halfmove_clock == other.halfmove_clock
            and self.fullmove_number == other.fullmove_number
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        rows: list[str] = []
        for rank in range(7, -1, -1):
            row = []
            for file in range(8):
                p = self[Position(file, rank)]
                row.append(str(p) if p else ".")
            rows.append(f"{rank + 1} {' '.join(row)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)
