"""UCI wire format: typed scores, ``info`` records and line parsers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chessbridge.core.enums import Color
from chessbridge.core.move import is_uci_token

_LOGGER = logging.getLogger(__name__)

MATE_SCORE = 100_000


@dataclass(frozen=True, slots=True)
class Score:
    """Engine score from the side to move's point of view.

    Exactly one of ``centipawns`` and ``mate_in`` is set.
    """

    centipawns: int | None = None
    mate_in: int | None = None

    def __post_init__(self) -> None:
        if (self.centipawns is None) == (self.mate_in is None):
            raise ValueError("Score needs exactly one of centipawns or mate_in")

    @classmethod
    def cp(cls, value: int) -> Score:
        return cls(centipawns=value)

    @classmethod
    def mate(cls, moves: int) -> Score:
        return cls(mate_in=moves)

    @property
    def is_mate(self) -> bool:
        return self.mate_in is not None

    def to_centipawns(self) -> int:
        """Collapse to one scalar; mate in N maps to ``±(100000 - |N|)``."""
        if self.mate_in is not None:
            magnitude = MATE_SCORE - abs(self.mate_in)
            return magnitude if self.mate_in > 0 else -magnitude
        assert self.centipawns is not None
        return self.centipawns

    def negated(self) -> Score:
        if self.mate_in is not None:
            return Score.mate(-self.mate_in)
        assert self.centipawns is not None
        return Score.cp(-self.centipawns)

    def white_relative(self, side_to_move: Color) -> Score:
        """Flip to White's point of view when Black is to move."""
        return self if side_to_move == Color.WHITE else self.negated()

    def __str__(self) -> str:
        if self.mate_in is not None:
            return f"Mate in {self.mate_in}"
        assert self.centipawns is not None
        return f"{self.centipawns / 100:+.2f}"


@dataclass(frozen=True, slots=True)
class AnalysisInfo:
    """One parsed ``info`` line."""

    depth: int = 0
    seldepth: int = 0
    nodes: int = 0
    nps: int = 0
    multipv: int = 1
    score: Score | None = None
    best_move: str | None = None
    ponder_move: str | None = None
    pv: tuple[str, ...] = ()

    @property
    def is_mate(self) -> bool:
        return self.score is not None and self.score.is_mate


_INT_FIELDS = {
    "depth": "depth",
    "seldepth": "seldepth",
    "nodes": "nodes",
    "nps": "nps",
    "multipv": "multipv",
}


def parse_info_line(line: str) -> AnalysisInfo | None:
    """Parse an ``info ... score ...`` line; other lines return ``None``."""
    parts = line.split()
    if not parts or parts[0] != "info" or "score" not in parts:
        return None

    values: dict[str, int] = {}
    score: Score | None = None
    pv: tuple[str, ...] = ()

    idx = 1
    while idx < len(parts):
        key = parts[idx]
        if key in _INT_FIELDS and idx + 1 < len(parts):
            try:
                values[_INT_FIELDS[key]] = int(parts[idx + 1])
            except ValueError:
                _LOGGER.debug("Ignoring non-numeric %s in info line: %s", key, line)
            idx += 2
            continue
        if key == "score" and idx + 2 < len(parts):
            kind, raw = parts[idx + 1], parts[idx + 2]
            try:
                if kind == "cp":
                    score = Score.cp(int(raw))
                elif kind == "mate":
                    score = Score.mate(int(raw))
            except ValueError:
                score = None
            idx += 3
            continue
        if key == "pv":
            pv = tuple(token for token in parts[idx + 1 :] if is_uci_token(token))
            break
        if key == "string":
            break  # free text until end of line
        idx += 1

    return AnalysisInfo(
        **values,
        score=score,
        best_move=pv[0] if pv else None,
        ponder_move=pv[1] if len(pv) > 1 else None,
        pv=pv,
    )


def parse_bestmove_line(line: str) -> tuple[str | None, str | None] | None:
    """Return ``(best, ponder)`` for a ``bestmove`` line, ``None`` otherwise.

    ``bestmove (none)`` and a bare ``bestmove`` both give ``(None, None)``.
    """
    parts = line.split()
    if not parts or parts[0] != "bestmove":
        return None
    best = parts[1] if len(parts) > 1 and is_uci_token(parts[1]) else None
    ponder: str | None = None
    if len(parts) > 3 and parts[2] == "ponder" and is_uci_token(parts[3]):
        ponder = parts[3]
    return best, ponder


def parse_perft_line(line: str) -> str | None:
    """Move token from a ``e2e4: 1`` perft line, if it has UCI shape."""
    if ":" not in line:
        return None
    candidate = line.split(":", 1)[0].strip()
    return candidate if is_uci_token(candidate) else None


def is_perft_terminator(line: str) -> bool:
    return line.startswith("Nodes searched")


def parse_checkers_line(line: str) -> tuple[str, ...] | None:
    """Squares listed on a ``Checkers:`` line of the ``d`` command output."""
    stripped = line.strip()
    if not stripped.startswith("Checkers:"):
        return None
    return tuple(stripped[len("Checkers:") :].split())


# ── Command builders ─────────────────────────────────────────────────────────


def position_command(
    fen: str | None = None, moves: tuple[str, ...] | list[str] = ()
) -> str:
    """``position fen <FEN> [moves ...]`` or ``position startpos [moves ...]``."""
    base = f"position fen {fen}" if fen else "position startpos"
    if moves:
        return f"{base} moves {' '.join(moves)}"
    return base
