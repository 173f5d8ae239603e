"""
Definition of a move as exchanged between host and client.

Legality is never decided here: the host asks the rules oracle, the client trusts the host.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Self

from chesslink.board.pieces import FEN_TO_PIECE, PIECE_TO_FEN
from chesslink.board.square import Square
from chesslink.core.shared_types import PieceType


@dataclass(frozen=True)
class Move:
    """
    Endpoints + promotion choice identify a move.
    ---
    The flags are presentation metadata (ex. to highlight captures). They are excluded from
    equality and hashing, so a proposal matches a legal move whatever flags the proposer attached.
    """

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None
    is_capture: bool = field(default=False, compare=False)
    is_en_passant: bool = field(default=False, compare=False)
    is_castle: bool = field(default=False, compare=False)

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promote_to = FEN_TO_PIECE[uci[4].lower()] if len(uci) == 5 else None
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"

    def with_promotion(self, promote_to: Optional[PieceType]) -> Self:
        return replace(self, promote_to=promote_to)


LegalMoveSet = frozenset[Move]
