"""Game - one board plus move history, FEN history and end status."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from chessbridge.core.board import Board
from chessbridge.core.enums import Color
from chessbridge.core.move import Move
from chessbridge.core.notation.fen import (
    STARTING_FEN,
    board_from_fen,
    board_to_fen,
    canonical_fen,
    position_key,
)


class GameStatus(Enum):
    """Closed set of game outcomes."""

    IN_PROGRESS = "in_progress"
    WHITE_WINS_CHECKMATE = "white_wins_checkmate"
    BLACK_WINS_CHECKMATE = "black_wins_checkmate"
    STALEMATE = "stalemate"
    DRAW_FIFTY_MOVES = "draw_fifty_moves"
    DRAW_REPETITION = "draw_repetition"
    DRAW_INSUFFICIENT_MATERIAL = "draw_insufficient_material"
    DRAW_AGREEMENT = "draw_agreement"
    WHITE_RESIGNS = "white_resigns"
    BLACK_RESIGNS = "black_resigns"

    @property
    def result_token(self) -> str:
        """PGN result token for this status."""
        return _RESULT_TOKENS[self]

    @property
    def is_draw(self) -> bool:
        return self.result_token == "1/2-1/2"

    @classmethod
    def checkmate_against(cls, color: Color) -> GameStatus:
        """Status when *color* has been checkmated."""
        if color == Color.WHITE:
            return cls.BLACK_WINS_CHECKMATE
        return cls.WHITE_WINS_CHECKMATE

    @classmethod
    def resignation_by(cls, color: Color) -> GameStatus:
        if color == Color.WHITE:
            return cls.WHITE_RESIGNS
        return cls.BLACK_RESIGNS


_RESULT_TOKENS: dict[GameStatus, str] = {
    GameStatus.IN_PROGRESS: "*",
    GameStatus.WHITE_WINS_CHECKMATE: "1-0",
    GameStatus.BLACK_RESIGNS: "1-0",
    GameStatus.BLACK_WINS_CHECKMATE: "0-1",
    GameStatus.WHITE_RESIGNS: "0-1",
    GameStatus.STALEMATE: "1/2-1/2",
    GameStatus.DRAW_FIFTY_MOVES: "1/2-1/2",
    GameStatus.DRAW_REPETITION: "1/2-1/2",
    GameStatus.DRAW_INSUFFICIENT_MATERIAL: "1/2-1/2",
    GameStatus.DRAW_AGREEMENT: "1/2-1/2",
}


@dataclass
class Game:
    """Board, move history and FEN history of one game.

    ``fen_history`` always holds one more entry than ``move_history``: the
    first entry is the starting position. Undo reloads the board from the
    previous FEN instead of reversing the move.

    Legality is the caller's responsibility; this is a pure data/logic
    class with no engine access.
    """

    board: Board = field(init=False)
    status: GameStatus = field(default=GameStatus.IN_PROGRESS, init=False)
    move_history: list[Move] = field(default_factory=list, init=False)
    fen_history: list[str] = field(default_factory=list, init=False)
    # Result read from a PGN; it says who won but not how
    recorded_result: str | None = field(default=None, init=False)

    white: str = "White"
    black: str = "Black"
    event: str = "Casual Game"
    site: str = "chessbridge"
    round: str = "?"
    date: str = field(default_factory=lambda: date.today().isoformat())

    def __post_init__(self) -> None:
        self.board = Board.initial()
        self.fen_history.append(board_to_fen(self.board))

    # ── Initialisation ───────────────────────────────────────────────────

    def reset(self) -> None:
        """Return to the standard starting position with empty history."""
        self.load_fen(STARTING_FEN)

    def load_fen(self, fen: str) -> None:
        """Start over from *fen*. Raises :class:`MalformedFen` when invalid."""
        fen = canonical_fen(fen)
        self.board = board_from_fen(fen)
        self.move_history.clear()
        self.fen_history.clear()
        self.fen_history.append(fen)
        self.status = GameStatus.IN_PROGRESS
        self.recorded_result = None

    # ── Move application ─────────────────────────────────────────────────

    def make_move(self, move: Move) -> None:
        """Apply an already-validated move and record it."""
        self.board.apply_move(move)
        self.move_history.append(move)
        self.fen_history.append(board_to_fen(self.board))
        self.recorded_result = None

    def undo_move(self) -> Move | None:
        """Undo the last move. Returns the undone Move, or None if empty."""
        if not self.move_history:
            return None

        last = self.move_history.pop()
        self.fen_history.pop()
        self.board = board_from_fen(self.fen_history[-1])
        self.status = GameStatus.IN_PROGRESS
        self.recorded_result = None
        return last

    # ── Status ───────────────────────────────────────────────────────────

    def set_status(self, status: GameStatus) -> None:
        self.status = status

    def resign(self, color: Color) -> None:
        self.status = GameStatus.resignation_by(color)

    def agree_draw(self) -> None:
        self.status = GameStatus.DRAW_AGREEMENT

    # ── Draw rules (pure queries) ────────────────────────────────────────

    def is_threefold_repetition(self) -> bool:
        """Current board/side/castling/ep key seen at least three times."""
        current = position_key(self.current_fen)
        counts = Counter(position_key(fen) for fen in self.fen_history)
        return counts[current] >= 3

    def is_fifty_move_rule(self) -> bool:
        return self.board.halfmove_clock >= 100  # 100 half-moves = 50 full moves

    # ── Query helpers ────────────────────────────────────────────────────

    @property
    def current_fen(self) -> str:
        return self.fen_history[-1]

    @property
    def start_fen(self) -> str:
        return self.fen_history[0]

    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    @property
    def is_game_over(self) -> bool:
        return self.status != GameStatus.IN_PROGRESS

    @property
    def result_token(self) -> str:
        """Token for the status; an imported result while still in progress."""
        if self.status == GameStatus.IN_PROGRESS and self.recorded_result is not None:
            return self.recorded_result
        return self.status.result_token

    @property
    def move_count(self) -> int:
        """Number of half-moves played."""
        return len(self.move_history)

    @property
    def last_move(self) -> Move | None:
        return self.move_history[-1] if self.move_history else None

    def san_history(self) -> list[str]:
        return [move.san for move in self.move_history]

    def uci_moves(self) -> list[str]:
        return [move.uci for move in self.move_history]
