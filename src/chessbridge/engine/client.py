"""UCI engine process client.

One :class:`EngineClient` owns one engine process. Every protocol exchange
runs on a single-thread executor, so requests are served in FIFO order and
only one exchange is ever in flight. A reader thread pumps the engine's
stdout into a queue; the executor thread is the only consumer.

Analysis is one long-lived task on that executor. Anything else that needs
the pipe first stops the analysis and drains its leftover output.
"""

from __future__ import annotations

import concurrent.futures
import dataclasses
import logging
import queue
import subprocess
import threading
import time
from collections.abc import Callable, Iterator
from enum import Enum, auto
from typing import IO, Any, TypeVar

from chessbridge.engine.config import EngineConfiguration
from chessbridge.engine.protocol import (
    AnalysisInfo,
    Score,
    is_perft_terminator,
    parse_bestmove_line,
    parse_checkers_line,
    parse_info_line,
    parse_perft_line,
    position_command,
)
from chessbridge.errors import (
    EngineCommunicationError,
    EngineError,
    EngineNotRunning,
    EngineUnavailable,
)
from chessbridge.settings import EngineSettings, find_engine_executable

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

InfoCallback = Callable[[AnalysisInfo], None]
BestMoveCallback = Callable[[str | None], None]

_EOF = object()
_END = object()


class EngineState(Enum):
    STOPPED = auto()
    STARTING = auto()
    IDLE = auto()
    QUERYING = auto()
    ANALYZING = auto()
    STOPPING = auto()


class AnalysisStream:
    """Finite stream of :class:`AnalysisInfo` ending in one best move.

    Iterating blocks until the next record arrives and stops once the
    analysis finished, was cancelled or failed. ``best_move`` is set only when
    the engine finished on its own.
    """

    __slots__ = ("_queue", "_done", "best_move", "cancelled", "error")

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._done = threading.Event()
        self.best_move: str | None = None
        self.cancelled = False
        self.error: BaseException | None = None

    def __iter__(self) -> Iterator[AnalysisInfo]:
        while True:
            item = self._queue.get()
            if item is _END:
                self._queue.put(_END)  # later iterations end too
                return
            assert isinstance(item, AnalysisInfo)
            yield item

    @property
    def is_finished(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the stream is finished. Returns ``False`` on timeout."""
        return self._done.wait(timeout)

    def _push(self, info: AnalysisInfo) -> None:
        if not self._done.is_set():
            self._queue.put(info)

    def _finish(
        self,
        best_move: str | None = None,
        *,
        cancelled: bool = False,
        error: BaseException | None = None,
    ) -> None:
        if self._done.is_set():
            return
        self.best_move = best_move
        self.cancelled = cancelled
        self.error = error
        self._done.set()
        self._queue.put(_END)


class EngineClient:
    """Owns an external UCI engine process and serialises all access to it.

    Usage::

        with EngineClient("/usr/bin/stockfish") as client:
            client.legal_moves(STARTING_FEN)
            client.best_move(STARTING_FEN)
    """

    def __init__(
        self,
        executable: str | None = None,
        configuration: EngineConfiguration | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        base = settings if settings is not None else EngineSettings()
        self._settings = dataclasses.replace(base, path=executable or base.path)
        self._config = (
            configuration.copy() if configuration is not None else EngineConfiguration()
        )

        self._process: subprocess.Popen[str] | None = None
        self._lines: queue.Queue[object] = queue.Queue()
        self._reader: threading.Thread | None = None
        self._executor: concurrent.futures.ThreadPoolExecutor | None = None
        self._worker_ident: int | None = None

        self._state = EngineState.STOPPED
        self._state_lock = threading.Lock()
        self._write_lock = threading.RLock()
        self._callback_lock = threading.RLock()

        self._analysis_future: concurrent.futures.Future[str | None] | None = None
        self._analysis_stream: AnalysisStream | None = None
        self._analysis_cancel = threading.Event()
        self._analysis_started = threading.Event()

        self.engine_name = ""

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> EngineState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        process = self._process
        return process is not None and process.poll() is None

    @property
    def is_analyzing(self) -> bool:
        return self.state == EngineState.ANALYZING

    @property
    def configuration(self) -> EngineConfiguration:
        return self._config.copy()

    @property
    def executable(self) -> str:
        return self._settings.path

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Launch the engine, complete the handshake and apply the config.

        Raises :class:`EngineUnavailable` when the binary cannot be launched,
        exits right away or does not complete the ``uci`` handshake within
        ``startup_timeout_s``.
        """
        if self.is_running:
            return
        if self._process is not None:
            self.stop()  # reap a dead process before relaunching

        path = self._settings.path or find_engine_executable()
        self._settings.path = path
        self._set_state(EngineState.STARTING)

        try:
            process = subprocess.Popen(
                [path, *self._settings.args],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            self._set_state(EngineState.STOPPED)
            raise EngineUnavailable(f"Cannot launch engine {path!r}: {exc}") from exc

        try:
            exit_code: int | None = process.wait(timeout=self._settings.startup_check_s)
        except subprocess.TimeoutExpired:
            exit_code = None
        if exit_code is not None:
            self._close_pipes(process)
            self._set_state(EngineState.STOPPED)
            raise EngineUnavailable(
                f"Engine {path!r} exited immediately with code {exit_code}"
            )

        self._process = process
        self._lines = queue.Queue()
        self._reader = threading.Thread(
            target=self._pump_stdout,
            args=(process.stdout, self._lines),
            name="uci-engine-reader",
            daemon=True,
        )
        self._reader.start()
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="uci-engine"
        )

        timeout = self._settings.startup_timeout_s
        try:
            self._submit(self._handshake, self._config.copy()).result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            self.stop()
            raise EngineUnavailable(
                f"Engine {path!r} did not complete the UCI handshake within {timeout:.1f}s"
            ) from exc
        except EngineCommunicationError as exc:
            self.stop()
            raise EngineUnavailable(f"Engine {path!r} failed the UCI handshake") from exc

        self._set_state(EngineState.IDLE)
        _LOGGER.info(
            "Engine started: %s (pid %d)", self.engine_name or path, process.pid
        )

    def stop(self) -> None:
        """Quit the engine, killing it if it does not exit in time. Idempotent."""
        process = self._process
        if process is None:
            self._set_state(EngineState.STOPPED)
            return

        self._set_state(EngineState.STOPPING)
        with self._callback_lock:
            self._analysis_cancel.set()

        if process.poll() is None:
            try:
                self._send("quit")
            except EngineError as exc:
                _LOGGER.debug("Could not send quit: %s", exc)
            try:
                process.wait(timeout=self._settings.quit_timeout_s)
            except subprocess.TimeoutExpired:
                _LOGGER.warning(
                    "Engine did not quit within %.1fs; killing it",
                    self._settings.quit_timeout_s,
                )
                process.kill()
                process.wait()

        self._close_pipes(process)
        self._process = None

        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        if self._analysis_stream is not None:
            self._analysis_stream._finish(cancelled=True)
        self._analysis_stream = None
        self._analysis_future = None

        self._set_state(EngineState.STOPPED)
        _LOGGER.info("Engine stopped")

    def shutdown(self) -> None:
        """Stop the engine and wait for the reader thread to exit."""
        reader = self._reader
        self.stop()
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=self._settings.quit_timeout_s)
        self._reader = None

    def __enter__(self) -> EngineClient:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # ── Configuration ────────────────────────────────────────────────────

    def set_configuration(self, configuration: EngineConfiguration) -> None:
        """Store *configuration*; re-apply it now when the engine is running."""
        self._config = configuration.copy()
        if not self.is_running:
            return
        self.stop_analysis()
        self._submit(self._apply_configuration, self._config.copy()).result()

    # ── Queries ──────────────────────────────────────────────────────────

    def best_move(self, fen: str) -> str | None:
        """Best move for *fen* under the current configuration.

        ``None`` when the engine reports no move (mate or stalemate).
        """
        return self.best_move_async(fen).result()

    def best_move_async(self, fen: str) -> concurrent.futures.Future[str | None]:
        self._prepare_query()
        return self._submit(self._query_best_move, fen, self._config.go_command())

    def legal_moves(self, fen: str) -> frozenset[str]:
        """Legal move tokens for *fen*, enumerated by ``go perft 1``."""
        return self.legal_moves_async(fen).result()

    def legal_moves_async(self, fen: str) -> concurrent.futures.Future[frozenset[str]]:
        self._prepare_query()
        return self._submit(self._query_legal_moves, fen)

    def evaluate(self, fen: str, depth: int = 10) -> Score:
        """Score of *fen* from the side to move's point of view."""
        self._prepare_query()
        return self._submit(self._query_evaluate, fen, depth).result()

    def checkers(self, fen: str) -> tuple[str, ...]:
        """Squares of pieces giving check in *fen*.

        Uses the ``d`` debug command and its ``Checkers:`` line, which
        Stockfish and its derivatives print. Engines without ``d`` give an
        empty tuple.
        """
        self._prepare_query()
        return self._submit(self._query_checkers, fen).result()

    def is_in_check(self, fen: str) -> bool:
        return bool(self.checkers(fen))

    # ── Analysis ─────────────────────────────────────────────────────────

    def start_analysis(
        self,
        fen: str,
        on_info: InfoCallback | None = None,
        on_best_move: BestMoveCallback | None = None,
    ) -> AnalysisStream:
        """Start ``go infinite`` on *fen*, replacing any running analysis."""
        self._require_running()
        self.stop_analysis()

        cancel = threading.Event()
        started = threading.Event()
        stream = AnalysisStream()
        self._analysis_cancel = cancel
        self._analysis_started = started
        self._analysis_stream = stream
        self._set_state(EngineState.ANALYZING)
        self._analysis_future = self._submit(
            self._run_analysis, fen, stream, cancel, started, on_info, on_best_move
        )
        return stream

    def stop_analysis(self) -> None:
        """Cancel the running analysis. Safe to call when none is running.

        Once this returns no further info or best-move callback is made for
        the interrupted analysis.
        """
        future = self._analysis_future
        stream = self._analysis_stream
        if future is None:
            return

        with self._callback_lock:
            self._analysis_cancel.set()

        # A task still queued never runs.
        if not future.done() and not future.cancel():
            # ``go infinite`` is written under the write lock, so either the
            # search is already running or the task will see the cancel flag
            # and skip it. Only a running search gets ``stop``.
            with self._write_lock:
                if self._analysis_started.is_set():
                    try:
                        self._send("stop")
                    except EngineError as exc:
                        _LOGGER.warning("Could not send stop to engine: %s", exc)
            # From the worker thread the task is still running underneath us.
            if not self._on_worker_thread():
                done, _ = concurrent.futures.wait(
                    [future], timeout=self._settings.stop_timeout_s
                )
                if not done:
                    _LOGGER.warning(
                        "Analysis did not stop within %.1fs",
                        self._settings.stop_timeout_s,
                    )

        if stream is not None:
            stream._finish(cancelled=True)
        self._analysis_future = None
        self._analysis_stream = None
        if self.state == EngineState.ANALYZING:
            self._set_state(EngineState.IDLE)

    # ── Command helpers ──────────────────────────────────────────────────

    @staticmethod
    def position_command(fen: str | None = None, moves: tuple[str, ...] = ()) -> str:
        return position_command(fen, moves)

    # ── Internals: executor tasks ────────────────────────────────────────

    def _handshake(self, config: EngineConfiguration) -> None:
        self._send("uci")
        while True:
            line = self._read_line()
            if line.startswith("id name "):
                self.engine_name = line[len("id name ") :].strip()
            if "uciok" in line:
                break
        self._apply_configuration(config)

    def _apply_configuration(self, config: EngineConfiguration) -> None:
        for command in config.uci_options():
            self._send(command)
        self._sync_ready()
        _LOGGER.info("Engine configured: %s", config.summary())

    def _query_best_move(self, fen: str, go_command: str) -> str | None:
        self._set_state_if(EngineState.IDLE, EngineState.QUERYING)
        try:
            self._sync_ready()
            self._send(position_command(fen))
            self._send(go_command)
            while True:
                parsed = parse_bestmove_line(self._read_line())
                if parsed is not None:
                    return parsed[0]
        finally:
            self._set_state_if(EngineState.QUERYING, EngineState.IDLE)

    def _query_legal_moves(self, fen: str) -> frozenset[str]:
        self._set_state_if(EngineState.IDLE, EngineState.QUERYING)
        try:
            self._sync_ready()
            self._send(position_command(fen))
            self._send("go perft 1")
            moves: set[str] = set()
            while True:
                line = self._read_line()
                if is_perft_terminator(line):
                    break
                token = parse_perft_line(line)
                if token is not None:
                    moves.add(token)
                elif ":" in line:
                    _LOGGER.warning("Skipping malformed perft line: %r", line)
            return frozenset(moves)
        finally:
            self._set_state_if(EngineState.QUERYING, EngineState.IDLE)

    def _query_evaluate(self, fen: str, depth: int) -> Score:
        self._set_state_if(EngineState.IDLE, EngineState.QUERYING)
        try:
            self._sync_ready()
            self._send(position_command(fen))
            self._send(f"go depth {depth}")
            score: Score | None = None
            while True:
                line = self._read_line()
                if parse_bestmove_line(line) is not None:
                    break
                info = parse_info_line(line)
                if info is not None and info.score is not None and info.multipv == 1:
                    score = info.score
            if score is None:
                raise EngineCommunicationError(f"Engine reported no score for {fen}")
            return score
        finally:
            self._set_state_if(EngineState.QUERYING, EngineState.IDLE)

    def _query_checkers(self, fen: str) -> tuple[str, ...]:
        self._set_state_if(EngineState.IDLE, EngineState.QUERYING)
        try:
            self._sync_ready()
            self._send(position_command(fen))
            self._send("d")
            # ``readyok`` bounds the reply for engines without ``d``.
            self._send("isready")
            checkers: tuple[str, ...] | None = None
            while True:
                line = self._read_line()
                if "readyok" in line:
                    break
                parsed = parse_checkers_line(line)
                if parsed is not None:
                    checkers = parsed
            if checkers is None:
                _LOGGER.warning(
                    "Engine printed no Checkers line for 'd'; assuming no check"
                )
                return ()
            return checkers
        finally:
            self._set_state_if(EngineState.QUERYING, EngineState.IDLE)

    def _run_analysis(
        self,
        fen: str,
        stream: AnalysisStream,
        cancel: threading.Event,
        started: threading.Event,
        on_info: InfoCallback | None,
        on_best_move: BestMoveCallback | None,
    ) -> str | None:
        try:
            self._sync_ready()
            self._send(position_command(fen))
            with self._write_lock:
                if cancel.is_set():
                    stream._finish(cancelled=True)
                    return None
                self._send("go infinite")
                started.set()
            while True:
                line = self._read_line()
                parsed = parse_bestmove_line(line)
                if parsed is not None:
                    best_move = parsed[0]
                    break
                info = parse_info_line(line)
                if info is None:
                    continue
                with self._callback_lock:
                    if cancel.is_set():
                        continue
                    stream._push(info)
                    if on_info is not None:
                        on_info(info)
        except EngineCommunicationError as exc:
            if cancel.is_set():
                stream._finish(cancelled=True)
                return None
            stream._finish(error=exc)
            raise
        except BaseException as exc:
            stream._finish(cancelled=cancel.is_set(), error=exc)
            raise

        if cancel.is_set():
            self._drain()
            stream._finish(cancelled=True)
            return None

        with self._callback_lock:
            if cancel.is_set():
                stream._finish(cancelled=True)
                return None
            if self._analysis_stream is stream:
                self._set_state_if(EngineState.ANALYZING, EngineState.IDLE)
            stream._finish(best_move)
            if on_best_move is not None:
                on_best_move(best_move)
        return best_move

    # ── Internals: pipe I/O ──────────────────────────────────────────────

    def _sync_ready(self) -> None:
        """``isready`` round trip; discards any stale lines before ``readyok``."""
        self._send("isready")
        while "readyok" not in self._read_line():
            pass

    def _send(self, command: str) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise EngineNotRunning("Engine is not running")
        with self._write_lock:
            try:
                process.stdin.write(command + "\n")
                process.stdin.flush()
            except (OSError, ValueError) as exc:
                raise EngineCommunicationError(
                    f"Failed to send {command!r} to engine: {exc}"
                ) from exc
        _LOGGER.debug(">> %s", command)

    def _read_line(self) -> str:
        """Next engine line; blocks without timeout."""
        item = self._lines.get()
        if item is _EOF:
            self._lines.put(_EOF)
            raise EngineCommunicationError("Engine closed its output stream")
        assert isinstance(item, str)
        _LOGGER.debug("<< %s", item)
        return item

    def _drain(self) -> None:
        """Wait the grace period, then discard everything already buffered."""
        time.sleep(self._settings.drain_grace_s)
        drained = 0
        while True:
            try:
                item = self._lines.get_nowait()
            except queue.Empty:
                break
            if item is _EOF:
                self._lines.put(_EOF)
                break
            drained += 1
        if drained:
            _LOGGER.debug("Drained %d stale engine lines", drained)

    @staticmethod
    def _pump_stdout(stream: IO[str] | None, lines: queue.Queue[object]) -> None:
        try:
            if stream is not None:
                for raw_line in stream:
                    lines.put(raw_line.rstrip("\r\n"))
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Engine reader stopped: %s", exc)
        finally:
            lines.put(_EOF)

    @staticmethod
    def _close_pipes(process: subprocess.Popen[str]) -> None:
        for pipe in (process.stdin, process.stdout):
            if pipe is None:
                continue
            try:
                pipe.close()
            except OSError as exc:
                _LOGGER.debug("Error closing engine pipe: %s", exc)

    # ── Internals: executor and state ────────────────────────────────────

    def _prepare_query(self) -> None:
        self._require_running()
        self.stop_analysis()

    def _require_running(self) -> None:
        if not self.is_running or self._executor is None:
            raise EngineNotRunning("Engine is not running")

    def _submit(
        self, fn: Callable[..., _T], *args: Any
    ) -> concurrent.futures.Future[_T]:
        executor = self._executor
        if executor is None:
            raise EngineNotRunning("Engine is not running")
        try:
            return executor.submit(self._run_task, fn, *args)
        except RuntimeError as exc:
            raise EngineNotRunning("Engine executor has been shut down") from exc

    def _run_task(self, fn: Callable[..., _T], *args: Any) -> _T:
        self._worker_ident = threading.get_ident()
        return fn(*args)

    def _on_worker_thread(self) -> bool:
        return threading.get_ident() == self._worker_ident

    def _set_state(self, state: EngineState) -> None:
        with self._state_lock:
            if self._state != state:
                _LOGGER.debug("Engine state %s -> %s", self._state.name, state.name)
            self._state = state

    def _set_state_if(self, expected: EngineState, state: EngineState) -> None:
        with self._state_lock:
            if self._state == expected:
                self._state = state
