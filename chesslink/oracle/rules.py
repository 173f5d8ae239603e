"""
The rules oracle: the only place where chess legality and game termination are decided.

The protocol treats it as opaque. The host consults it, the client never does.
python-chess does the actual work.
"""

from typing import Optional, Protocol

import chess

from chesslink.core.shared_types import Outcome


class RulesOracle(Protocol):
    """Just the parts the host needs"""

    def new_board(self, fen: Optional[str] = None) -> chess.Board: ...

    def legal_moves(
        self,
        board: chess.Board,
        from_square: Optional[chess.Square] = None,
        to_square: Optional[chess.Square] = None,
    ) -> list[chess.Move]: ...

    def apply_move(self, board: chess.Board, move: chess.Move) -> chess.Board: ...

    def classify(self, board: chess.Board) -> Outcome: ...


class PythonChessOracle:
    """Standard chess rules, as implemented by python-chess."""

    def new_board(self, fen: Optional[str] = None) -> chess.Board:
        return chess.Board(fen) if fen else chess.Board()

    def legal_moves(
        self,
        board: chess.Board,
        from_square: Optional[chess.Square] = None,
        to_square: Optional[chess.Square] = None,
    ) -> list[chess.Move]:
        """Legal moves for the side to move, optionally restricted to an origin and/or destination square."""
        return [
            move
            for move in board.legal_moves
            if (from_square is None or move.from_square == from_square)
            and (to_square is None or move.to_square == to_square)
        ]

    def apply_move(self, board: chess.Board, move: chess.Move) -> chess.Board:
        """Returns the position after the move. The given board is left untouched."""
        after = board.copy(stack=True)
        after.push(move)
        return after

    def classify(self, board: chess.Board) -> Outcome:
        """
        Map python-chess' termination onto the protocol's outcome
        ---
        * checkmate: the side that is NOT to move delivered mate
        * stalemate, insufficient material, 75-move rule, fivefold repetition: draw
        * invalid position (ex. both kings missing): indeterminate
        """
        if not board.is_valid():
            return Outcome.INDETERMINATE

        result = board.outcome(claim_draw=False)
        if result is None:
            return Outcome.ONGOING
        if result.termination == chess.Termination.CHECKMATE:
            return (
                Outcome.CHECKMATE_WHITE
                if result.winner == chess.WHITE
                else Outcome.CHECKMATE_BLACK
            )
        if result.winner is None:
            return Outcome.DRAW
        return Outcome.INDETERMINATE
