"""Notation package: FEN / PGN parsing and serialization."""

from chessbridge.core.notation.fen import (
    STARTING_FEN,
    board_from_fen,
    board_to_fen,
    canonical_fen,
    is_valid_fen,
    position_key,
    validate_fen,
)
from chessbridge.core.notation.models import ParsedPgn
from chessbridge.core.notation.pgn import (
    PGN_RESULT_TOKENS,
    SEVEN_TAG_ROSTER,
    UCI_MOVES_TAG,
    build_pgn,
    is_valid_pgn,
    parse_movetext,
    parse_pgn_game,
    pgn_movetext_from_sans,
)

__all__ = [
    "PGN_RESULT_TOKENS",
    "SEVEN_TAG_ROSTER",
    "STARTING_FEN",
    "UCI_MOVES_TAG",
    "ParsedPgn",
    "board_from_fen",
    "board_to_fen",
    "build_pgn",
    "canonical_fen",
    "is_valid_fen",
    "is_valid_pgn",
    "parse_movetext",
    "parse_pgn_game",
    "pgn_movetext_from_sans",
    "position_key",
    "validate_fen",
]
