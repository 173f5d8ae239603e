"""
Type definitions used across layers
"""

from enum import StrEnum


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    EMPTY = "empty"
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class Outcome(StrEnum):
    """
    Classification of a position.
    ---
    CHECKMATE_WHITE / CHECKMATE_BLACK name the side that delivered mate (i.e. the winner).
    INDETERMINATE is terminal, but nobody can say how the game ended (ex. the oracle received an invalid position).
    """

    ONGOING = "ongoing"
    DRAW = "draw"
    CHECKMATE_WHITE = "checkmate white"
    CHECKMATE_BLACK = "checkmate black"
    INDETERMINATE = "indeterminate"

    @property
    def is_over(self) -> bool:
        return self != Outcome.ONGOING


class Feature(StrEnum):
    """Rules the host announces during the handshake."""

    EN_PASSANT = "en passant"
    CASTLING = "castling"
    PROMOTION = "promotion"
