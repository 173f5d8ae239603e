"""Unit tests for chesslink/board/position.py"""

import chess
import pytest

from chesslink.board.pieces import EMPTY, Piece
from chesslink.board.position import Position
from chesslink.board.square import Square
from chesslink.core.shared_types import Color, PieceType


def test_starting_position() -> None:
    position = Position.from_fen(chess.STARTING_BOARD_FEN)
    assert position.piece(Square.from_algebraic("e1")) == Piece(PieceType.KING, Color.WHITE)
    assert position.piece(Square.from_algebraic("d8")) == Piece(PieceType.QUEEN, Color.BLACK)
    assert position.piece(Square.from_algebraic("e2")) == Piece(PieceType.PAWN, Color.WHITE)
    assert position.piece(Square.from_algebraic("e4")) == EMPTY
    assert len(position.pieces) == 64


@pytest.mark.parametrize(
    "fen",
    [
        chess.STARTING_BOARD_FEN,
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR",
        "8/8/8/8/8/8/8/8",
        "4k3/P7/8/8/8/8/8/4K3",
    ],
)
def test_fen_round_trip(fen: str) -> None:
    """Reading a placement and writing it back gives the same string."""
    assert Position.from_fen(fen).to_fen() == fen


def test_from_full_fen_string() -> None:
    """Only the first (placement) field of a full FEN is used."""
    full = f"{chess.STARTING_BOARD_FEN} w KQkq - 0 1"
    assert Position.from_fen(full) == Position.from_fen(chess.STARTING_BOARD_FEN)


@pytest.mark.parametrize(
    "placement, from_sq, to_sq, expected",
    [
        ("4k3/P7/8/8/8/8/8/4K3", "a7", "a8", True),  # white pawn to the 8th rank
        ("4k3/8/8/8/8/8/p7/4K3", "a2", "a1", True),  # black pawn to the 1st rank
        ("4k3/8/8/8/8/8/P7/4K3", "a2", "a3", False),  # not the far rank
        ("R3k3/8/8/8/8/8/8/4K3", "a8", "a7", False),  # not a pawn
        ("4k3/8/8/8/8/8/8/4K3", "a7", "a8", False),  # nothing there
    ],
)
def test_promotion_squares(placement: str, from_sq: str, to_sq: str, expected: bool) -> None:
    position = Position.from_fen(placement)
    result = position.is_promotion_square_for(
        Square.from_algebraic(from_sq), Square.from_algebraic(to_sq)
    )
    assert result == expected
