"""GameController - orchestrates a game against the engine-backed rules.

Coordinates: Game, MoveCoordinator and the engine client.
Emits events via simple callbacks so the UI / tests can subscribe.

All game and legal-move-cache mutation happens here, on the caller's
thread, after the engine round trip has completed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from chessbridge.core.enums import Color, PieceType
from chessbridge.core.move import Move
from chessbridge.core.types import Position
from chessbridge.errors import EngineNotRunning
from chessbridge.game.coordinator import MoveCoordinator
from chessbridge.game.game import Game, GameStatus

_LOGGER = logging.getLogger(__name__)


class EngineQueries(Protocol):
    """Subset of :class:`~chessbridge.engine.client.EngineClient` used here."""

    @property
    def is_running(self) -> bool: ...

    def legal_moves(self, fen: str) -> frozenset[str]: ...

    def best_move(self, fen: str) -> str | None: ...

    def is_in_check(self, fen: str) -> bool: ...


# ── Event definitions ────────────────────────────────────────────────────────

MoveCallback = Callable[[Move, Game], None]
GameOverCallback = Callable[[GameStatus], None]
LegalMovesCallback = Callable[[frozenset[str]], None]


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_legal_moves: list[LegalMovesCallback] = field(default_factory=list)


# ── Controller ───────────────────────────────────────────────────────────────


class GameController:
    """Runs a game: validates input against the cached legal moves, applies
    moves, asks the engine for its moves and detects the end of the game.

    Thread-safety: call from a single thread (the main/UI thread).
    """

    __slots__ = (
        "_client",
        "_game",
        "_coordinator",
        "_legal_known",
        "events",
    )

    def __init__(self, client: EngineQueries, game: Game | None = None) -> None:
        self._client = client
        self._game = game if game is not None else Game()
        self._coordinator = MoveCoordinator()
        self._legal_known = False
        self.events = GameEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def game(self) -> Game:
        return self._game

    @property
    def coordinator(self) -> MoveCoordinator:
        return self._coordinator

    @property
    def client(self) -> EngineQueries:
        return self._client

    # ── Setup ────────────────────────────────────────────────────────────

    def new_game(self, fen: str | None = None) -> Game:
        """Start a fresh game, from *fen* when given."""
        game = Game()
        if fen is not None:
            game.load_fen(fen)
        self.load_game(game)
        return game

    def load_game(self, game: Game) -> None:
        self._game = game
        self.refresh_legal_moves()

    def refresh_legal_moves(self) -> frozenset[str]:
        """Re-fetch the legal move set for the current position."""
        legal = self._fetch_legal_moves(self._game.current_fen)
        self._coordinator.set_legal_moves(legal)
        self._emit_legal_moves(legal)
        return legal

    # ── Moves ────────────────────────────────────────────────────────────

    def submit_move(
        self,
        from_sq: Position,
        to_sq: Position,
        promotion: PieceType | None = None,
    ) -> Move | None:
        """Play a user move. Returns the applied move, or ``None`` if rejected.

        A pawn reaching the last rank promotes to a queen unless *promotion*
        says otherwise.
        """
        if self._game.is_game_over:
            return None

        board = self._game.board
        if not self._coordinator.basic_validation(board, from_sq, to_sq):
            return None

        if self._coordinator.is_promotion_move(board, from_sq, to_sq):
            if promotion is None:
                promotion = PieceType.QUEEN
        else:
            promotion = None

        token = self._coordinator.build_token(from_sq, to_sq, promotion)
        if not self._coordinator.is_legal(token):
            _LOGGER.debug("Rejected illegal move %s", token)
            return None

        return self._apply(Move.from_uci(token, board))

    def play_engine_move(self) -> Move | None:
        """Ask the engine for a move in the current position and play it."""
        if self._game.is_game_over:
            return None

        token = self._client.best_move(self._game.current_fen)
        if token is None:
            self.check_game_end()
            return None
        if self._legal_known and not self._coordinator.is_legal(token):
            _LOGGER.warning("Engine move %s is not in the cached legal set", token)
        return self._apply(Move.from_uci(token, self._game.board))

    def suggest_move(self) -> str | None:
        """Engine's best move for a hint; the game is not changed."""
        if self._game.is_game_over:
            return None
        return self._client.best_move(self._game.current_fen)

    def undo_move(self) -> Move | None:
        undone = self._game.undo_move()
        if undone is None:
            return None
        self.refresh_legal_moves()
        return undone

    # ── Game end ─────────────────────────────────────────────────────────

    def check_game_end(self, in_check: bool | None = None) -> GameStatus:
        """Detect and record the end of the game.

        No legal moves means checkmate when the side to move is in check,
        else stalemate. Then the fifty-move rule, then threefold repetition.
        """
        game = self._game
        if game.is_game_over:
            return game.status

        status = GameStatus.IN_PROGRESS
        if self._legal_known and not self._coordinator.has_legal_moves:
            if in_check is None:
                in_check = self._client.is_in_check(game.current_fen)
            if in_check:
                status = GameStatus.checkmate_against(game.side_to_move)
            else:
                status = GameStatus.STALEMATE
        elif game.is_fifty_move_rule():
            status = GameStatus.DRAW_FIFTY_MOVES
        elif game.is_threefold_repetition():
            status = GameStatus.DRAW_REPETITION

        if status != GameStatus.IN_PROGRESS:
            game.set_status(status)
            _LOGGER.info("Game over: %s (%s)", status.name, status.result_token)
            self._emit_game_over(status)
        return status

    def resign(self, color: Color) -> None:
        if self._game.is_game_over:
            return
        self._game.resign(color)
        self._emit_game_over(self._game.status)

    def agree_draw(self) -> None:
        if self._game.is_game_over:
            return
        self._game.agree_draw()
        self._emit_game_over(self._game.status)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _apply(self, move: Move) -> Move:
        # Look at the resulting position before committing so the move can
        # carry its check flags into the history.
        after = self._game.board.copy()
        after.apply_move(move)
        fen_after = after.fen()

        legal = self._fetch_legal_moves(fen_after)
        in_check = self._fetch_in_check(fen_after)
        move = move.with_check(in_check, in_check and self._legal_known and not legal)

        self._game.make_move(move)
        self._coordinator.set_legal_moves(legal)

        self._emit_move(move)
        self._emit_legal_moves(legal)
        self.check_game_end(in_check=in_check)
        return move

    def _fetch_legal_moves(self, fen: str) -> frozenset[str]:
        try:
            legal = self._client.legal_moves(fen)
        except EngineNotRunning:
            _LOGGER.warning("Engine not running; legal move cache cleared")
            self._legal_known = False
            return frozenset()
        self._legal_known = True
        return legal

    def _fetch_in_check(self, fen: str) -> bool:
        if not self._legal_known:
            return False
        return self._client.is_in_check(fen)

    def _emit_move(self, move: Move) -> None:
        for cb in self.events.on_move:
            cb(move, self._game)

    def _emit_game_over(self, status: GameStatus) -> None:
        for cb in self.events.on_game_over:
            cb(status)

    def _emit_legal_moves(self, legal: frozenset[str]) -> None:
        for cb in self.events.on_legal_moves:
            cb(legal)
