"""Game layer: history and draw rules, legal-move cache, orchestration."""

from chessbridge.game.controller import GameController, GameEvents
from chessbridge.game.coordinator import MoveCoordinator, parse_legal_moves
from chessbridge.game.game import Game, GameStatus
from chessbridge.game.pgn_io import (
    export_pgn,
    import_pgn,
    load_pgn_file,
    save_pgn_file,
)

__all__ = [
    "Game",
    "GameController",
    "GameEvents",
    "GameStatus",
    "MoveCoordinator",
    "export_pgn",
    "import_pgn",
    "load_pgn_file",
    "parse_legal_moves",
    "save_pgn_file",
]
