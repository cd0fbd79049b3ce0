"""Qt bridge that re-emits engine client results as signals."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import TYPE_CHECKING

from PyQt6.QtCore import QObject, pyqtBoundSignal, pyqtSignal, pyqtSlot

from chessbridge.engine.protocol import AnalysisInfo
from chessbridge.errors import EngineError

if TYPE_CHECKING:
    from chessbridge.engine.client import EngineClient

_LOGGER = logging.getLogger(__name__)

ANALYSIS_REQUEST_ID = -1


class EngineBridge(QObject):
    """Thread-safe front for :class:`EngineClient` used by the UI thread.

    Results are produced on the engine's executor thread and emitted from
    there; Qt delivers them to receivers in other threads as queued calls.
    """

    best_move_ready = pyqtSignal(int, object)  # request_id, token | None
    legal_moves_ready = pyqtSignal(int, object)  # request_id, frozenset[str]
    analysis_info = pyqtSignal(object)  # AnalysisInfo
    analysis_finished = pyqtSignal(object)  # best move token | None
    engine_error = pyqtSignal(int, str)

    def __init__(self, client: EngineClient, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._client = client

    @property
    def client(self) -> EngineClient:
        return self._client

    @pyqtSlot(str, int)
    def request_best_move(self, fen: str, request_id: int) -> None:
        """Ask for the best move in *fen*; answers on ``best_move_ready``."""
        try:
            future = self._client.best_move_async(fen)
        except EngineError as exc:
            self.engine_error.emit(request_id, str(exc))
            return
        future.add_done_callback(
            lambda f: self._emit_result(f, request_id, self.best_move_ready)
        )

    @pyqtSlot(str, int)
    def request_legal_moves(self, fen: str, request_id: int) -> None:
        try:
            future = self._client.legal_moves_async(fen)
        except EngineError as exc:
            self.engine_error.emit(request_id, str(exc))
            return
        future.add_done_callback(
            lambda f: self._emit_result(f, request_id, self.legal_moves_ready)
        )

    @pyqtSlot(str)
    def start_analysis(self, fen: str) -> None:
        try:
            self._client.start_analysis(
                fen,
                on_info=self._on_analysis_info,
                on_best_move=self.analysis_finished.emit,
            )
        except EngineError as exc:
            self.engine_error.emit(ANALYSIS_REQUEST_ID, str(exc))

    @pyqtSlot()
    def stop_analysis(self) -> None:
        self._client.stop_analysis()

    # ── Internal helpers ─────────────────────────────────────────────────

    def _on_analysis_info(self, info: AnalysisInfo) -> None:
        self.analysis_info.emit(info)

    def _emit_result(
        self,
        future: concurrent.futures.Future[object],
        request_id: int,
        signal: pyqtBoundSignal,
    ) -> None:
        if future.cancelled():
            _LOGGER.debug("Engine request %d was cancelled", request_id)
            return
        exc = future.exception()
        if exc is not None:
            self.engine_error.emit(request_id, str(exc))
            return
        signal.emit(request_id, future.result())
