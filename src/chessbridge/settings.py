"""Process-level engine settings and executable discovery."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from chessbridge.errors import EngineUnavailable

_LOGGER = logging.getLogger(__name__)

ENGINE_ENV_VAR = "CHESSBRIDGE_ENGINE"

# Searched in order after the environment variable
KNOWN_ENGINE_PATHS = (
    "/opt/homebrew/bin/stockfish",
    "/usr/local/bin/stockfish",
    "/usr/bin/stockfish",
    "/usr/games/stockfish",
)


def find_engine_executable() -> str:
    """Locate a UCI engine binary.

    Checks ``$CHESSBRIDGE_ENGINE``, then the known install paths, then
    ``stockfish`` on ``PATH``. Raises :class:`EngineUnavailable` if nothing
    is found.
    """
    env_path = os.environ.get(ENGINE_ENV_VAR, "").strip()
    if env_path:
        if Path(env_path).is_file():
            return env_path
        _LOGGER.warning("%s points to a missing file: %s", ENGINE_ENV_VAR, env_path)

    for path_str in KNOWN_ENGINE_PATHS:
        if Path(path_str).is_file():
            return path_str

    which_result = shutil.which("stockfish")
    if which_result is not None:
        return which_result

    raise EngineUnavailable(
        f"No UCI engine found. Set {ENGINE_ENV_VAR} or install stockfish."
    )


@dataclass
class EngineSettings:
    """How the engine process is launched and shut down."""

    path: str = ""
    args: tuple[str, ...] = ()
    drain_grace_s: float = 0.05  # wait after ``stop`` before draining
    quit_timeout_s: float = 1.0
    stop_timeout_s: float = 2.0  # bound on waiting for an analysis to wind down
    startup_check_s: float = 0.1  # an exit inside this window means a bad binary
    startup_timeout_s: float = 10.0  # bound on the uci handshake

    @classmethod
    def discover(cls) -> EngineSettings:
        path = find_engine_executable()
        _LOGGER.info("Using engine executable %s", path)
        return cls(path=path)
