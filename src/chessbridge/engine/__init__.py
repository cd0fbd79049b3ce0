"""Engine package: UCI process client, configuration and wire protocol.

The Qt bridge lives in :mod:`chessbridge.engine.qt_bridge` and is not
imported here, so the client can be used without PyQt6 loaded.
"""

from chessbridge.engine.client import AnalysisStream, EngineClient, EngineState
from chessbridge.engine.config import EngineConfiguration, Preset
from chessbridge.engine.protocol import AnalysisInfo, Score, position_command

__all__ = [
    "AnalysisInfo",
    "AnalysisStream",
    "EngineClient",
    "EngineConfiguration",
    "EngineState",
    "Preset",
    "Score",
    "position_command",
]
