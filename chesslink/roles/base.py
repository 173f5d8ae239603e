"""
Capability set shared by both ends of a connection.

Suspension contracts
---
* submit_move: may block. On the client it waits for exactly one reply from the host.
* await_opponent: NEVER blocks. Call it once per tick of the render/input loop while the opponent has
  the move; it returns WaitResult.NOT_READY when nothing has arrived yet. It does not retry internally.
"""

from typing import Protocol

from chesslink.board.moves import Move
from chesslink.board.snapshot import Snapshot
from chesslink.board.square import Square
from chesslink.core.shared_types import Color
from chesslink.protocol.exchange import MoveExchange, ProposalResult, WaitResult


class GameRole(Protocol):
    exchange: MoveExchange

    @property
    def color(self) -> Color: ...

    def get_legal_moves(self, from_square: Square) -> dict[Square, Move]:
        """Legal moves from a square, keyed by destination. Empty when it is not your turn."""
        ...

    def submit_move(self, move: Move) -> ProposalResult:
        """Play a move for the local player (only on your own turn)."""
        ...

    def await_opponent(self) -> WaitResult:
        """Poll once for the opponent's move (only on the opponent's turn)."""
        ...

    def current_snapshot(self) -> Snapshot: ...

    def close(self) -> None: ...
