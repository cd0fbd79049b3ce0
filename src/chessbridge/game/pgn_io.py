"""PGN import/export for :class:`Game`."""

from __future__ import annotations

import logging
from pathlib import Path

from chessbridge.core.move import Move
from chessbridge.core.notation import (
    STARTING_FEN,
    UCI_MOVES_TAG,
    build_pgn,
    parse_pgn_game,
)
from chessbridge.errors import PgnError
from chessbridge.game.game import Game

_LOGGER = logging.getLogger(__name__)

_FINISHED_RESULTS = frozenset({"1-0", "0-1", "1/2-1/2"})


def _pgn_date(iso_date: str) -> str:
    return iso_date.replace("-", ".")


def _iso_date(pgn_date: str) -> str:
    return pgn_date.replace(".", "-")


def export_pgn(game: Game) -> str:
    """Serialise *game* to a single-game PGN document."""
    result_token = game.result_token
    headers: dict[str, str] = {
        "Event": game.event,
        "Site": game.site,
        "Date": _pgn_date(game.date),
        "Round": game.round,
        "White": game.white,
        "Black": game.black,
        "Result": result_token,
    }
    if game.start_fen != STARTING_FEN:
        headers["SetUp"] = "1"
        headers["FEN"] = game.start_fen
    if game.move_history:
        headers[UCI_MOVES_TAG] = " ".join(game.uci_moves())

    return build_pgn(headers, game.san_history(), result_token)


def import_pgn(pgn_text: str) -> Game:
    """Rebuild a :class:`Game` from PGN text.

    Moves are replayed from the ``UCIMoves`` tag. Malformed tokens raise
    :class:`~chessbridge.errors.InvalidMoveToken`.
    """
    parsed = parse_pgn_game(pgn_text)
    headers = parsed.headers

    if parsed.sans and not parsed.uci_moves:
        raise PgnError(
            f"PGN has no {UCI_MOVES_TAG} tag; SAN-only movetext cannot be replayed"
        )

    game = Game(
        white=headers.get("White", "White"),
        black=headers.get("Black", "Black"),
        event=headers.get("Event", "Casual Game"),
        site=headers.get("Site", "chessbridge"),
        round=headers.get("Round", "?"),
    )
    if "Date" in headers:
        game.date = _iso_date(headers["Date"])

    start_fen = parsed.start_fen
    if start_fen is not None and headers.get("SetUp", "1") == "1":
        game.load_fen(start_fen)

    for token in parsed.uci_moves:
        move = Move.from_uci(token, game.board)
        if move.piece is None:
            raise PgnError(f"Move {token} in PGN starts from an empty square")
        game.make_move(move)

    # The status stays IN_PROGRESS: a result token does not say how the game ended
    if parsed.result_token in _FINISHED_RESULTS:
        game.recorded_result = parsed.result_token

    _LOGGER.debug(
        "Imported PGN: %d moves, result %s", game.move_count, game.result_token
    )
    return game


def save_pgn_file(game: Game, file_path: Path) -> Path:
    """Write *game* to disk, forcing a ``.pgn`` suffix."""
    save_path = Path(file_path)
    if save_path.suffix.lower() != ".pgn":
        save_path = save_path.with_suffix(".pgn")
    save_path.write_text(export_pgn(game), encoding="utf-8")
    _LOGGER.info("Saved PGN to %s", save_path)
    return save_path


def load_pgn_file(file_path: Path) -> Game:
    """Load a single PGN game from disk."""
    pgn_text = Path(file_path).read_text(encoding="utf-8")
    return import_pgn(pgn_text)
