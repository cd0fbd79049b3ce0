"""Board square value type and coordinate helpers.

Files and ranks are zero-based: ``Position(0, 0)`` is a1, ``Position(7, 7)`` is h8.
The flat index follows Little-Endian Rank-File mapping (a1=0, h1=7, a8=56).
"""

from __future__ import annotations

from dataclasses import dataclass

_FILES = "abcdefgh"
_RANKS = "12345678"


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """Immutable board square identified by file (a–h) and rank (1–8)."""

    file: int
    rank: int

    def __post_init__(self) -> None:
        if not (0 <= self.file <= 7 and 0 <= self.rank <= 7):
            raise ValueError(
                f"Invalid position: file={self.file}, rank={self.rank}"
            )

    # ── Conversion ───────────────────────────────────────────────────────

    @classmethod
    def from_algebraic(cls, name: str) -> Position:
        """Parse a square name, e.g. ``'e4'`` → ``Position(4, 3)``."""
        if not isinstance(name, str) or len(name) != 2:
            raise ValueError(f"Invalid square name: {name!r}")
        file_char = name[0].lower()
        if file_char not in _FILES or name[1] not in _RANKS:
            raise ValueError(f"Invalid square name: {name!r}")
        return cls(_FILES.index(file_char), _RANKS.index(name[1]))

    @classmethod
    def from_index(cls, index: int) -> Position:
        """Square from a flat 0–63 index."""
        if not 0 <= index < 64:
            raise ValueError(f"Invalid square index: {index}")
        return cls(index & 7, index >> 3)

    @property
    def algebraic(self) -> str:
        return self.file_char + str(self.rank_number)

    @property
    def index(self) -> int:
        return self.rank * 8 + self.file

    @property
    def file_char(self) -> str:
        return _FILES[self.file]

    @property
    def rank_number(self) -> int:
        return self.rank + 1

    @property
    def is_light_square(self) -> bool:
        return (self.file + self.rank) % 2 == 1

    def __str__(self) -> str:
        return self.algebraic

    def __repr__(self) -> str:
        return f"Position({self.algebraic})"


def parse_square(name: str) -> Position:
    """Parse square name, e.g. 'e4'."""
    return Position.from_algebraic(name)


def square_name(pos: Position) -> str:
    """Human-readable name, e.g. Position(0, 0) → 'a1'."""
    return pos.algebraic


def is_valid_square_name(name: str) -> bool:
    return len(name) == 2 and name[0] in _FILES and name[1] in _RANKS


# ── Named square constants ──────────────────────────────────────────────────

A1, B1, C1, D1, E1, F1, G1, H1 = (Position(f, 0) for f in range(8))
A2, B2, C2, D2, E2, F2, G2, H2 = (Position(f, 1) for f in range(8))
A3, B3, C3, D3, E3, F3, G3, H3 = (Position(f, 2) for f in range(8))
A4, B4, C4, D4, E4, F4, G4, H4 = (Position(f, 3) for f in range(8))
A5, B5, C5, D5, E5, F5, G5, H5 = (Position(f, 4) for f in range(8))
A6, B6, C6, D6, E6, F6, G6, H6 = (Position(f, 5) for f in range(8))
A7, B7, C7, D7, E7, F7, G7, H7 = (Position(f, 6) for f in range(8))
A8, B8, C8, D8, E8, F8, G8, H8 = (Position(f, 7) for f in range(8))

ALL_SQUARES: tuple[Position, ...] = tuple(Position.from_index(i) for i in range(64))
