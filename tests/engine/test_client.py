"""Tests for EngineClient against the scripted fake engine."""

from __future__ import annotations

import dataclasses
import re
import sys
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from chessbridge.core.notation import STARTING_FEN
from chessbridge.engine.client import EngineClient, EngineState
from chessbridge.engine.config import EngineConfiguration, Preset
from chessbridge.engine.protocol import AnalysisInfo, Score
from chessbridge.errors import (
    EngineCommunicationError,
    EngineNotRunning,
    EngineUnavailable,
)
from chessbridge.settings import EngineSettings

FAKE_ENGINE = str(Path(__file__).with_name("fake_engine.py"))
MATED_FEN = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
ONE_MOVE_FEN = "k7/8/8/8/8/8/8/K6r w - - 0 1"


def _settings(*flags: str) -> EngineSettings:
    return EngineSettings(
        path=sys.executable,
        args=("-u", FAKE_ENGINE, *flags),
        drain_grace_s=0.02,
        quit_timeout_s=2.0,
        stop_timeout_s=2.0,
        startup_check_s=0.05,
        startup_timeout_s=5.0,
    )


def _wait_until(condition: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


@pytest.fixture
def client() -> Iterator[EngineClient]:
    engine = EngineClient(settings=_settings())
    engine.start()
    yield engine
    engine.shutdown()


class TestLifecycle:
    def test_start_and_stop(self) -> None:
        engine = EngineClient(settings=_settings())
        assert engine.state == EngineState.STOPPED
        engine.start()
        assert engine.is_running
        assert engine.state == EngineState.IDLE
        assert engine.engine_name == "FakeFish 1.0"
        engine.stop()
        assert not engine.is_running
        assert engine.state == EngineState.STOPPED
        engine.stop()  # idempotent

    def test_start_twice_is_a_no_op(self, client: EngineClient) -> None:
        client.start()
        assert client.state == EngineState.IDLE

    def test_restart_after_stop(self) -> None:
        engine = EngineClient(settings=_settings())
        engine.start()
        engine.stop()
        engine.start()
        try:
            assert engine.legal_moves(STARTING_FEN)
        finally:
            engine.shutdown()

    def test_context_manager(self) -> None:
        with EngineClient(settings=_settings()) as engine:
            assert engine.is_running
        assert not engine.is_running

    def test_missing_binary(self) -> None:
        engine = EngineClient("/nonexistent/path/to/engine")
        with pytest.raises(EngineUnavailable):
            engine.start()
        assert engine.state == EngineState.STOPPED

    def test_process_exiting_at_launch(self) -> None:
        engine = EngineClient(settings=_settings("--exit-immediately"))
        with pytest.raises(EngineUnavailable):
            engine.start()
        assert not engine.is_running

    def test_handshake_failure(self) -> None:
        engine = EngineClient(settings=_settings("--no-uciok"))
        with pytest.raises(EngineUnavailable):
            engine.start()
        assert engine.state == EngineState.STOPPED

    def test_handshake_timeout(self) -> None:
        settings = dataclasses.replace(_settings("--silent"), startup_timeout_s=0.5)
        engine = EngineClient(settings=settings)
        started = time.monotonic()
        with pytest.raises(EngineUnavailable):
            engine.start()
        assert time.monotonic() - started < 5.0
        assert not engine.is_running
        assert engine.state == EngineState.STOPPED

    def test_settings_are_not_mutated(self) -> None:
        settings = _settings()
        EngineClient("/usr/bin/other-engine", settings=settings)
        assert settings.path == sys.executable


class TestNotRunning:
    def test_queries_require_running_engine(self) -> None:
        engine = EngineClient(settings=_settings())
        with pytest.raises(EngineNotRunning):
            engine.best_move(STARTING_FEN)
        with pytest.raises(EngineNotRunning):
            engine.legal_moves(STARTING_FEN)
        with pytest.raises(EngineNotRunning):
            engine.start_analysis(STARTING_FEN)

    def test_stop_analysis_without_engine_is_safe(self) -> None:
        EngineClient(settings=_settings()).stop_analysis()

    def test_set_configuration_while_stopped_is_stored(self) -> None:
        engine = EngineClient(settings=_settings())
        cfg = EngineConfiguration()
        cfg.apply_preset(Preset.HARD)
        engine.set_configuration(cfg)
        assert engine.configuration.preset == Preset.HARD


class TestQueries:
    def test_session_scenario(self, client: EngineClient) -> None:
        legal = client.legal_moves(STARTING_FEN)
        assert len(legal) == 20
        assert "e2e4" in legal
        best = client.best_move(STARTING_FEN)
        assert best is not None
        assert re.fullmatch(r"[a-h][1-8][a-h][1-8]", best)

    def test_no_legal_moves(self, client: EngineClient) -> None:
        assert client.legal_moves(MATED_FEN) == frozenset()

    def test_best_move_none(self, client: EngineClient) -> None:
        assert client.best_move(MATED_FEN) is None

    def test_best_move_async(self, client: EngineClient) -> None:
        future = client.best_move_async(ONE_MOVE_FEN)
        assert future.result(timeout=5) == "a1b2"

    def test_requests_are_served_in_order(self, client: EngineClient) -> None:
        first = client.legal_moves_async(STARTING_FEN)
        second = client.legal_moves_async(ONE_MOVE_FEN)
        third = client.best_move_async(STARTING_FEN)
        assert len(first.result(timeout=5)) == 20
        assert second.result(timeout=5) == frozenset({"a1b2"})
        assert third.result(timeout=5) == "e2e4"

    def test_evaluate(self, client: EngineClient) -> None:
        assert client.evaluate(STARTING_FEN, depth=2) == Score.cp(25)
        assert client.evaluate(MATED_FEN) == Score.mate(0)

    def test_check_query(self, client: EngineClient) -> None:
        assert client.checkers(MATED_FEN) == ("h4",)
        assert client.is_in_check(MATED_FEN)
        assert not client.is_in_check(STARTING_FEN)

    def test_reconfigure_while_running(self, client: EngineClient) -> None:
        cfg = EngineConfiguration()
        cfg.threads = 2
        client.set_configuration(cfg)
        assert client.configuration.threads == 2
        assert client.best_move(STARTING_FEN) == "e2e4"

    def test_position_command(self) -> None:
        assert EngineClient.position_command() == "position startpos"
        assert EngineClient.position_command(STARTING_FEN) == (
            f"position fen {STARTING_FEN}"
        )


class TestEngineFailures:
    def test_check_query_without_debug_command(self) -> None:
        with EngineClient(settings=_settings("--no-debug")) as engine:
            assert engine.checkers(MATED_FEN) == ()
            assert not engine.is_in_check(MATED_FEN)
            assert len(engine.legal_moves(STARTING_FEN)) == 20

    def test_crash_mid_query(self) -> None:
        engine = EngineClient(settings=_settings("--crash-on-go"))
        engine.start()
        try:
            assert len(engine.legal_moves(STARTING_FEN)) == 20
            with pytest.raises(EngineCommunicationError):
                engine.best_move(STARTING_FEN)
            assert _wait_until(lambda: not engine.is_running)
            with pytest.raises(EngineNotRunning):
                engine.best_move(STARTING_FEN)
        finally:
            engine.shutdown()
        assert engine.state == EngineState.STOPPED


class TestAnalysis:
    def test_stop_analysis_cancels_callbacks(self, client: EngineClient) -> None:
        infos: list[AnalysisInfo] = []
        best_moves: list[str | None] = []
        first_info = threading.Event()

        def on_info(info: AnalysisInfo) -> None:
            infos.append(info)
            first_info.set()

        stream = client.start_analysis(STARTING_FEN, on_info, best_moves.append)
        assert client.state == EngineState.ANALYZING
        assert first_info.wait(5)

        client.stop_analysis()
        delivered = len(infos)
        time.sleep(0.1)

        assert len(infos) == delivered
        assert best_moves == []
        assert stream.is_finished
        assert stream.cancelled
        assert stream.best_move is None
        assert client.state == EngineState.IDLE
        assert infos[0].score is not None
        assert infos[0].pv == ("e2e4", "e7e5")

    def test_stream_iterates_until_cancelled(self, client: EngineClient) -> None:
        stream = client.start_analysis(STARTING_FEN)
        received: list[AnalysisInfo] = []
        for info in stream:
            received.append(info)
            if len(received) == 3:
                client.stop_analysis()
        assert len(received) >= 3
        assert stream.cancelled

    def test_query_after_analysis_is_not_confused(self, client: EngineClient) -> None:
        seen = threading.Event()
        stream = client.start_analysis(STARTING_FEN, lambda _info: seen.set())
        assert seen.wait(5)
        assert client.best_move(ONE_MOVE_FEN) == "a1b2"
        assert stream.cancelled
        assert len(client.legal_moves(STARTING_FEN)) == 20

    def test_natural_finish_reports_best_move(self, client: EngineClient) -> None:
        finished = threading.Event()
        best_moves: list[str | None] = []

        def on_best_move(move: str | None) -> None:
            best_moves.append(move)
            finished.set()

        stream = client.start_analysis(MATED_FEN, on_best_move=on_best_move)
        assert finished.wait(5)
        assert stream.wait(5)
        infos = list(stream)
        assert best_moves == [None]
        assert not stream.cancelled
        assert len(infos) == 1
        assert infos[0].is_mate
        assert client.state == EngineState.IDLE

    def test_restarting_analysis_replaces_previous(self, client: EngineClient) -> None:
        seen = threading.Event()
        first = client.start_analysis(STARTING_FEN, lambda _info: seen.set())
        assert seen.wait(5)
        second = client.start_analysis(STARTING_FEN)
        assert first.cancelled
        assert not second.is_finished
        client.stop_analysis()
        assert second.cancelled

    def test_stop_engine_during_analysis(self) -> None:
        engine = EngineClient(settings=_settings())
        engine.start()
        seen = threading.Event()
        stream = engine.start_analysis(STARTING_FEN, lambda _info: seen.set())
        assert seen.wait(5)
        engine.shutdown()
        assert stream.wait(5)
        assert stream.cancelled
        assert engine.state == EngineState.STOPPED

    def test_stop_right_after_start(self, client: EngineClient) -> None:
        for _ in range(5):
            stream = client.start_analysis(STARTING_FEN)
            client.stop_analysis()
            assert stream.cancelled
            assert client.state == EngineState.IDLE
            assert client.best_move_async(ONE_MOVE_FEN).result(timeout=5) == "a1b2"

    def test_stop_does_not_cut_short_an_earlier_query(
        self, client: EngineClient
    ) -> None:
        earlier = client.best_move_async(STARTING_FEN)
        stream = client.start_analysis(STARTING_FEN)
        client.stop_analysis()
        assert earlier.result(timeout=5) == "e2e4"
        assert stream.cancelled
        assert len(client.legal_moves(ONE_MOVE_FEN)) == 1

    def test_queued_query_keeps_analysis_state(self, client: EngineClient) -> None:
        pending = client.legal_moves_async(STARTING_FEN)
        seen = threading.Event()
        client.start_analysis(STARTING_FEN, lambda _info: seen.set())
        assert len(pending.result(timeout=5)) == 20
        assert seen.wait(5)
        assert client.is_analyzing
        client.stop_analysis()
        assert client.state == EngineState.IDLE
