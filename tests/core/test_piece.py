"""Tests for the Piece value type."""

import pytest

from chessbridge.core.enums import Color, PieceType
from chessbridge.core.piece import (
    BLACK_KNIGHT,
    WHITE_KING,
    WHITE_QUEEN,
    Piece,
)


class TestPiece:
    def test_fen_characters(self) -> None:
        assert WHITE_KING.char == "K"
        assert BLACK_KNIGHT.char == "n"
        assert str(WHITE_QUEEN) == "Q"

    def test_from_char_round_trip(self) -> None:
        for char in "PNBRQKpnbrqk":
            assert Piece.from_char(char).char == char

    def test_from_char_invalid(self) -> None:
        with pytest.raises(ValueError):
            Piece.from_char("x")

    def test_descriptive_helpers(self) -> None:
        assert BLACK_KNIGHT.name == "knight"
        assert BLACK_KNIGHT.color_name == "black"
        assert not BLACK_KNIGHT.is_white
        assert WHITE_KING.symbol == "♔"

    def test_equality_is_by_value(self) -> None:
        assert Piece(Color.WHITE, PieceType.KING) == WHITE_KING
        assert Piece(Color.BLACK, PieceType.KING) != WHITE_KING
