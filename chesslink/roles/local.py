"""
Local role: both players at the same board, no connection.

The rules oracle is consulted directly, like on the host. After every move the exchange switches sides, so
there is never an opponent to wait for.
"""

import logging
from typing import Optional, Self

import chess

from chesslink.board.moves import Move
from chesslink.board.snapshot import Snapshot
from chesslink.board.square import Square
from chesslink.core.shared_types import Color
from chesslink.oracle.rules import PythonChessOracle, RulesOracle
from chesslink.protocol.codec import coerce_promotion, oracle_move_for, snapshot_from_oracle
from chesslink.protocol.exchange import MoveExchange, Phase, ProposalResult, WaitResult

log = logging.getLogger(__name__)


class LocalRole:
    def __init__(self, oracle: RulesOracle, board: chess.Board, exchange: MoveExchange) -> None:
        self.oracle = oracle
        self.board = board
        self.exchange = exchange
        self.last_move: Optional[Move] = None

    @classmethod
    def new_game(cls, oracle: Optional[RulesOracle] = None) -> Self:
        oracle = oracle or PythonChessOracle()
        board = oracle.new_board()
        snapshot = snapshot_from_oracle(oracle, board)
        return cls(oracle, board, MoveExchange.start(Color.WHITE, 0, snapshot))

    @property
    def color(self) -> Color:
        """The side to move."""
        return self.exchange.local_color

    def current_snapshot(self) -> Snapshot:
        return self.exchange.snapshot

    def get_legal_moves(self, from_square: Square) -> dict[Square, Move]:
        if self.exchange.phase != Phase.AWAITING_LOCAL_SELECTION:
            return {}
        return self.exchange.snapshot.moves_from(from_square)

    def submit_move(self, move: Move) -> ProposalResult:
        """Apply a move for the side to move. Illegal moves are REJECTED and the same side chooses again."""
        proposed = self.exchange.propose()
        legal = self.current_snapshot().find(
            coerce_promotion(move, self.current_snapshot().position)
        )
        if legal is None:
            log.info("Move not allowed: %s", move.to_uci())
            return ProposalResult.REJECTED

        self.board = self.oracle.apply_move(
            self.board, oracle_move_for(self.oracle, self.board, legal)
        )
        self.last_move = legal

        self.exchange = proposed.accept(
            snapshot_from_oracle(self.oracle, self.board)
        ).switch_sides()
        log.info("Ply %d: %s played %s", self.exchange.ply, proposed.local_color, legal.to_uci())
        if self.exchange.is_over:
            log.info(
                "Game over: %s, final position %s",
                self.exchange.snapshot.outcome,
                self.exchange.snapshot.position.to_fen(),
            )
        return ProposalResult.ACCEPTED

    def await_opponent(self) -> WaitResult:
        """There is no remote side: always raises (NotYourTurnError, or GameOverError once the game ended)."""
        self.exchange.assert_awaiting_remote()
        return WaitResult.NOT_READY

    def close(self) -> None:
        pass
