"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ParsedPgn:
    """Structured PGN payload used by game import paths."""

    headers: dict[str, str]
    sans: list[str]
    result_token: str
    uci_moves: list[str] = field(default_factory=list)

    @property
    def start_fen(self) -> str | None:
        """Starting FEN declared by the ``FEN`` tag, if any."""
        return self.headers.get("FEN")
