"""What both sides agree on after every message: placement, legal moves for the side to move, and the outcome."""

from dataclasses import dataclass

from chesslink.board.moves import LegalMoveSet, Move
from chesslink.board.position import Position
from chesslink.board.square import Square
from chesslink.core.shared_types import Outcome


@dataclass(frozen=True)
class Snapshot:
    position: Position
    legal_moves: LegalMoveSet
    outcome: Outcome

    def moves_from(self, from_square: Square) -> dict[Square, Move]:
        """Legal moves starting on a square, keyed by their destination (what a renderer highlights)."""
        return {
            move.to_square: move
            for move in self.legal_moves
            if move.from_square == from_square
        }

    def find(self, move: Move) -> Move | None:
        """The legal move matching the endpoints and promotion choice, if any."""
        return next((legal for legal in self.legal_moves if legal == move), None)
