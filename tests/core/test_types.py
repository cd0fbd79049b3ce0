"""Tests for Position and square helpers."""

import pytest

from chessbridge.core.types import (
    A1,
    ALL_SQUARES,
    E4,
    H8,
    Position,
    is_valid_square_name,
    parse_square,
    square_name,
)


class TestPosition:
    def test_algebraic_round_trip_for_every_square(self) -> None:
        for pos in ALL_SQUARES:
            assert Position.from_algebraic(pos.algebraic) == pos

    def test_file_and_rank(self) -> None:
        pos = Position.from_algebraic("e4")
        assert pos.file == 4
        assert pos.rank == 3
        assert pos == E4
        assert str(pos) == "e4"

    def test_upper_case_file_is_accepted(self) -> None:
        assert Position.from_algebraic("E4") == E4

    @pytest.mark.parametrize("bad", ["", "e", "e9", "i1", "e44", "44"])
    def test_invalid_algebraic_raises(self, bad: str) -> None:
        with pytest.raises(ValueError):
            Position.from_algebraic(bad)

    @pytest.mark.parametrize("file, rank", [(-1, 0), (8, 0), (0, -1), (0, 8)])
    def test_out_of_range_construction_raises(self, file: int, rank: int) -> None:
        with pytest.raises(ValueError):
            Position(file, rank)

    def test_index(self) -> None:
        assert A1.index == 0
        assert H8.index == 63
        assert Position.from_index(E4.index) == E4

    def test_from_index_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            Position.from_index(64)

    def test_square_colors(self) -> None:
        assert not A1.is_light_square
        assert H8.is_light_square is False
        assert Position.from_algebraic("h1").is_light_square

    def test_positions_are_hashable(self) -> None:
        assert len({Position(0, 0), A1, parse_square("a1")}) == 1


class TestSquareHelpers:
    def test_parse_and_name(self) -> None:
        assert square_name(parse_square("g7")) == "g7"

    def test_is_valid_square_name(self) -> None:
        assert is_valid_square_name("a8")
        assert not is_valid_square_name("a9")
        assert not is_valid_square_name("z1")
