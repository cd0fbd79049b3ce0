"""Tests for UCI line parsing and Score."""

import pytest

from chessbridge.core.enums import Color
from chessbridge.engine.protocol import (
    MATE_SCORE,
    Score,
    is_perft_terminator,
    parse_bestmove_line,
    parse_checkers_line,
    parse_info_line,
    parse_perft_line,
    position_command,
)


class TestScore:
    def test_needs_exactly_one_value(self) -> None:
        with pytest.raises(ValueError):
            Score()
        with pytest.raises(ValueError):
            Score(centipawns=1, mate_in=1)

    def test_centipawns(self) -> None:
        score = Score.cp(35)
        assert not score.is_mate
        assert score.to_centipawns() == 35
        assert str(score) == "+0.35"

    def test_mate_mapping(self) -> None:
        assert Score.mate(3).to_centipawns() == MATE_SCORE - 3
        assert Score.mate(-2).to_centipawns() == -(MATE_SCORE - 2)
        assert str(Score.mate(3)) == "Mate in 3"

    def test_mate_is_distinct_from_large_cp(self) -> None:
        assert Score.cp(MATE_SCORE) != Score.mate(0)
        assert not Score.cp(MATE_SCORE).is_mate

    def test_white_relative(self) -> None:
        assert Score.cp(50).white_relative(Color.BLACK) == Score.cp(-50)
        assert Score.mate(2).white_relative(Color.WHITE) == Score.mate(2)
        assert Score.mate(2).white_relative(Color.BLACK) == Score.mate(-2)


class TestInfoLine:
    def test_full_line(self) -> None:
        line = (
            "info depth 12 seldepth 18 multipv 1 score cp 31 nodes 123456 "
            "nps 987654 hashfull 12 tbhits 0 time 125 pv e2e4 e7e5 g1f3"
        )
        info = parse_info_line(line)
        assert info is not None
        assert info.depth == 12
        assert info.seldepth == 18
        assert info.nodes == 123456
        assert info.nps == 987654
        assert info.score == Score.cp(31)
        assert info.pv == ("e2e4", "e7e5", "g1f3")
        assert info.best_move == "e2e4"
        assert info.ponder_move == "e7e5"
        assert not info.is_mate

    def test_mate_score(self) -> None:
        info = parse_info_line("info depth 5 score mate -2 pv h7h8")
        assert info is not None
        assert info.is_mate
        assert info.score == Score.mate(-2)

    def test_bound_markers_are_skipped(self) -> None:
        info = parse_info_line("info depth 9 score cp 40 lowerbound nodes 10")
        assert info is not None
        assert info.score == Score.cp(40)
        assert info.nodes == 10

    @pytest.mark.parametrize(
        "line",
        [
            "info depth 1 currmove e2e4 currmovenumber 1",
            "info string NNUE evaluation enabled",
            "bestmove e2e4",
            "",
        ],
    )
    def test_lines_without_score(self, line: str) -> None:
        assert parse_info_line(line) is None


class TestTerminators:
    def test_bestmove(self) -> None:
        assert parse_bestmove_line("bestmove e2e4 ponder e7e5") == ("e2e4", "e7e5")
        assert parse_bestmove_line("bestmove a7a8q") == ("a7a8q", None)

    def test_bestmove_none(self) -> None:
        assert parse_bestmove_line("bestmove (none)") == (None, None)
        assert parse_bestmove_line("bestmove") == (None, None)

    def test_not_bestmove(self) -> None:
        assert parse_bestmove_line("info depth 1") is None

    def test_perft_lines(self) -> None:
        assert parse_perft_line("e2e4: 1") == "e2e4"
        assert parse_perft_line("a7a8q: 1") == "a7a8q"
        assert parse_perft_line("info string x: y") is None
        assert parse_perft_line("e2e4") is None
        assert is_perft_terminator("Nodes searched: 20")
        assert not is_perft_terminator("e2e4: 1")

    def test_checkers_line(self) -> None:
        assert parse_checkers_line("Checkers: ") == ()
        assert parse_checkers_line("Checkers: h4 e2 ") == ("h4", "e2")
        assert parse_checkers_line("Key: 8F8F01D4562F59FB") is None


class TestCommands:
    def test_position_fen(self) -> None:
        assert position_command("8/8/8/8/8/8/8/8 w - - 0 1") == (
            "position fen 8/8/8/8/8/8/8/8 w - - 0 1"
        )

    def test_position_startpos_with_moves(self) -> None:
        assert position_command(None, ["e2e4", "e7e5"]) == (
            "position startpos moves e2e4 e7e5"
        )
        assert position_command() == "position startpos"
