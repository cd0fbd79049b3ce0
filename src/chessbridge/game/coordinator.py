"""MoveCoordinator - cached legal-move set plus cheap local pre-filters.

The engine is the only legality authority. The coordinator keeps the set of
UCI tokens the engine reported for the current position and answers
membership and filtering questions from it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from chessbridge.core.board import Board
from chessbridge.core.enums import Color, PieceType
from chessbridge.core.move import Move, is_uci_token, parse_uci_token, promotion_char
from chessbridge.core.piece import Piece
from chessbridge.core.types import Position
from chessbridge.errors import IllegalMove

_LOGGER = logging.getLogger(__name__)

_PROMOTION_TYPES = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)


def parse_legal_moves(output: str) -> frozenset[str]:
    """Extract move tokens from perft-style or whitespace-separated output.

    ``e2e4: 1`` lines contribute the token before the colon; any other line
    contributes every whitespace-separated word that has UCI shape.
    """
    tokens: set[str] = set()
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("Nodes searched"):
            continue
        if ":" in line:
            candidate = line.split(":", 1)[0].strip()
            if is_uci_token(candidate):
                tokens.add(candidate)
            continue
        tokens.update(word for word in line.split() if is_uci_token(word))
    return frozenset(tokens)


class MoveCoordinator:
    """Validator and generator over the engine-supplied legal-move set."""

    __slots__ = ("_legal",)

    def __init__(self, legal_moves: Iterable[str] = ()) -> None:
        self._legal: frozenset[str] = frozenset(legal_moves)

    # ── Cache ────────────────────────────────────────────────────────────

    def set_legal_moves(self, tokens: Iterable[str]) -> None:
        """Replace the cache wholesale."""
        self._legal = frozenset(tokens)
        _LOGGER.debug("Legal-move cache replaced: %d moves", len(self._legal))

    def clear(self) -> None:
        self._legal = frozenset()

    @property
    def legal_moves(self) -> frozenset[str]:
        return self._legal

    # ── Validation ───────────────────────────────────────────────────────

    def is_legal(self, move: Move | str) -> bool:
        token = move.uci if isinstance(move, Move) else move
        return token in self._legal

    def require_legal(self, token: str) -> str:
        """Return *token* or raise.

        Raises :class:`InvalidMoveToken` for malformed text and
        :class:`IllegalMove` for a well-formed token not in the cache.
        """
        parse_uci_token(token)
        if token not in self._legal:
            raise IllegalMove(token)
        return token

    @staticmethod
    def basic_validation(board: Board, from_sq: Position, to_sq: Position) -> bool:
        """Cheap pre-filter for UI input before an engine round trip."""
        if from_sq == to_sq:
            return False
        piece = board[from_sq]
        if piece is None or piece.color != board.side_to_move:
            return False
        target = board[to_sq]
        return target is None or target.color != piece.color

    @staticmethod
    def is_promotion_move(board: Board, from_sq: Position, to_sq: Position) -> bool:
        piece = board[from_sq]
        if piece is None or piece.piece_type != PieceType.PAWN:
            return False
        last_rank = 7 if piece.color == Color.WHITE else 0
        return to_sq.rank == last_rank

    @staticmethod
    def promotion_pieces(color: Color) -> list[Piece]:
        """Promotion choices offered to the user, strongest first."""
        return [Piece(color, pt) for pt in _PROMOTION_TYPES]

    @staticmethod
    def build_token(
        from_sq: Position,
        to_sq: Position,
        promotion: PieceType | None = None,
    ) -> str:
        token = f"{from_sq}{to_sq}"
        if promotion is not None:
            token += promotion_char(promotion)
        return token

    # ── Generation ───────────────────────────────────────────────────────

    def moves_from(self, square: Position) -> list[str]:
        prefix = square.algebraic
        return sorted(token for token in self._legal if token.startswith(prefix))

    def destinations_from(self, square: Position) -> set[Position]:
        return {Position.from_algebraic(token[2:4]) for token in self.moves_from(square)}

    def destination_names(self, square: Position) -> set[str]:
        """Algebraic destination names for move hinting."""
        return {token[2:4] for token in self.moves_from(square)}

    @property
    def legal_move_count(self) -> int:
        return len(self._legal)

    @property
    def has_legal_moves(self) -> bool:
        return bool(self._legal)

    def __contains__(self, token: object) -> bool:
        return token in self._legal

    def __len__(self) -> int:
        return len(self._legal)
