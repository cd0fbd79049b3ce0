"""Exception hierarchy shared by the model, game and engine layers.

Every error raised on purpose by ``chessbridge`` derives from
:class:`ChessBridgeError`, so callers can catch the whole family at once.
Parse-style failures additionally derive from :class:`ValueError`.
"""

from __future__ import annotations


class ChessBridgeError(Exception):
    """Base class for all package errors."""


# ── Engine process ───────────────────────────────────────────────────────────


class EngineError(ChessBridgeError):
    """Base class for failures of the external engine process."""


class EngineUnavailable(EngineError):
    """The engine binary is missing or the process exited right after launch."""


class EngineNotRunning(EngineError):
    """An engine operation was attempted while the process is stopped."""


class EngineCommunicationError(EngineError):
    """The pipe to the engine broke in the middle of a protocol exchange."""


# ── Model / notation ─────────────────────────────────────────────────────────


class MalformedFen(ChessBridgeError, ValueError):
    """A FEN string failed to parse or validate."""


class InvalidMoveToken(ChessBridgeError, ValueError):
    """A move token does not have UCI shape (e.g. ``e2e4`` / ``e7e8q``)."""


class IllegalMove(ChessBridgeError):
    """A move is not in the engine-provided legal move set."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Illegal move: {token}")
        self.token = token


class PgnError(ChessBridgeError, ValueError):
    """A PGN document is structurally invalid."""
