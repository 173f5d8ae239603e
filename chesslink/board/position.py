"""
Piece placement as the protocol carries it.

On the client this is the mirror of the host's board, replaced wholesale by every message the host sends.
"""

from dataclasses import dataclass
from typing import Self

from chesslink.board.pieces import EMPTY, Piece
from chesslink.board.square import BOARD_DIMENSIONS, Square, all_squares
from chesslink.core.shared_types import Color, PieceType


@dataclass(frozen=True)
class Position:
    pieces: dict[Square, Piece]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a position using the first (placement) part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        * FEN is read from the 8th rank down to the 1st
        * within a rank, the first character is the a-file
        * digits denote that many consecutive empty squares
        """
        pieces: dict[Square, Piece] = {square: EMPTY for square in all_squares()}
        for rank_idx, fen_one_rank in enumerate(fen_str.split(" ")[0].split("/")):
            rank = BOARD_DIMENSIONS[1] - 1 - rank_idx
            file = 0
            for character in fen_one_rank:
                if character.isalpha():
                    pieces[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    file += int(character)
        return cls(pieces)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_DIMENSIONS[0]):
            piece = self.piece(Square(file, rank))

            if not piece.is_empty:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Piece:
        return self.pieces.get(square, EMPTY)

    def is_promotion_square_for(self, from_square: Square, to_square: Square) -> bool:
        """A pawn arriving at the far rank for its color."""
        piece = self.piece(from_square)
        if piece.type != PieceType.PAWN:
            return False
        last_rank = BOARD_DIMENSIONS[1] - 1 if piece.color == Color.WHITE else 0
        return to_square.rank == last_rank
