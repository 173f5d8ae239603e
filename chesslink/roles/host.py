"""
Host role: the authoritative side.

Owns the live board (a python-chess Board behind the rules oracle). Every move, its own or the client's,
is applied here first and then broadcast as a complete snapshot.
"""

import logging
from typing import Callable, Optional, Self
from uuid import UUID

import chess

from chesslink.board.moves import Move
from chesslink.board.snapshot import Snapshot
from chesslink.board.square import Square
from chesslink.core.config import DEFAULT_MAX_REJECTIONS
from chesslink.core.exceptions import (
    GameError,
    HandshakeError,
    IllegalMoveError,
    MalformedMessageError,
    RecordError,
    RetryLimitExceeded,
)
from chesslink.core.models import GameRecord
from chesslink.core.shared_types import Color
from chesslink.db.repository import GameRecordRepository
from chesslink.oracle.rules import PythonChessOracle, RulesOracle
from chesslink.protocol.codec import (
    coerce_promotion,
    move_from_wire,
    move_to_wire,
    snapshot_fields,
    oracle_move_for,
    snapshot_from_oracle,
)
from chesslink.protocol.exchange import MoveExchange, Phase, ProposalResult, WaitResult
from chesslink.protocol.handshake import read_client_handshake, send_host_handshake
from chesslink.protocol.messages import (
    CLIENT_MOVE,
    HostError,
    HostState,
    MoveProposal,
    parse_message,
)
from chesslink.protocol.transport import JsonStream

log = logging.getLogger(__name__)

# Picks the host's opening move when the host plays white
OpeningMoveSelector = Callable[[Snapshot], Move]

UNSUPPORTED_OPERATION = "unsupported operation"


def fixed_opening(uci: str) -> OpeningMoveSelector:
    """Always open with the same move, ex. the one from the settings."""
    opening = Move.from_uci(uci)
    return lambda snapshot: opening


class HostRole:
    def __init__(
        self,
        stream: JsonStream,
        oracle: RulesOracle,
        board: chess.Board,
        exchange: MoveExchange,
        max_rejections: Optional[int] = DEFAULT_MAX_REJECTIONS,
        recorder: Optional[GameRecordRepository] = None,
    ) -> None:
        self.stream = stream
        self.oracle = oracle
        self.board = board
        self.exchange = exchange
        self.max_rejections = max_rejections
        self.recorder = recorder
        self.record_id: Optional[UUID] = None
        self.last_move: Optional[Move] = None
        # consecutive refusals within the current opponent turn
        self.rejections = 0

    @classmethod
    def accept_handshake(
        cls,
        stream: JsonStream,
        oracle: Optional[RulesOracle] = None,
        choose_opening: Optional[OpeningMoveSelector] = None,
        max_rejections: Optional[int] = DEFAULT_MAX_REJECTIONS,
        recorder: Optional[GameRecordRepository] = None,
    ) -> Self:
        """
        Serve the handshake of a freshly connected client (blocks).
        ---
        1. read the requested color
        2. if the host plays white: play the opening move (picked by `choose_opening`)
        3. reply with the oracle's view of the position
        Any failure closes the connection: game setup is aborted.
        """
        oracle = oracle or PythonChessOracle()
        try:
            request = read_client_handshake(stream)
            board = oracle.new_board()
            host = cls(
                stream,
                oracle,
                board,
                MoveExchange.start(
                    request.requested_host_color, 0, snapshot_from_oracle(oracle, board)
                ),
                max_rejections=max_rejections,
                recorder=recorder,
            )
            if host.color == Color.WHITE:
                if choose_opening is None:
                    raise HandshakeError("Host plays white, but nobody picks its opening move.")
                host._apply_local(choose_opening(host.current_snapshot()))
            send_host_handshake(stream, host.current_snapshot())
            host._start_record()
        except GameError:
            stream.close()
            raise

        log.info("Game started: host plays %s", host.color)
        return host

    @property
    def color(self) -> Color:
        return self.exchange.local_color

    def current_snapshot(self) -> Snapshot:
        return self.exchange.snapshot

    def get_legal_moves(self, from_square: Square) -> dict[Square, Move]:
        if self.exchange.phase != Phase.AWAITING_LOCAL_SELECTION:
            return {}
        return self.exchange.snapshot.moves_from(from_square)

    def submit_move(self, move: Move) -> ProposalResult:
        """
        Play the host's own move.
        ---
        Applied straight to the oracle, then broadcast to the client as a State message (for display only:
        the client does not get a say).
        """
        try:
            applied = self._apply_local(move)
        except IllegalMoveError as exc:
            log.warning("Local move refused: %s", exc)
            return ProposalResult.REJECTED

        self.stream.send(
            HostState(**snapshot_fields(self.current_snapshot()), move_applied=move_to_wire(applied))
        )
        self._update_record()
        return ProposalResult.ACCEPTED

    def await_opponent(self) -> WaitResult:
        """
        Handle the client documents that already arrived. Never blocks.
        ---
        Illegal, malformed and unsupported requests each get an Error reply (with the unchanged state) and
        the turn stays with the client. The first legal proposal is applied and broadcast.
        """
        self.exchange.assert_awaiting_remote()
        while True:
            try:
                document = self.stream.poll()
                if document is None:
                    return WaitResult.NOT_READY
                request = parse_message(document, CLIENT_MOVE)
            except MalformedMessageError as exc:
                self._refuse(f"malformed message: {exc}")
                continue

            if not isinstance(request, MoveProposal):
                # TODO: resignation / draw offers once the protocol defines their replies
                self._refuse(f"{UNSUPPORTED_OPERATION}: {request.type}")
                continue

            proposed = coerce_promotion(
                move_from_wire(request.move), self.current_snapshot().position
            )
            legal = self.current_snapshot().find(proposed)
            if legal is None:
                self._refuse(f"illegal move: {proposed.to_uci()}")
                continue

            self._apply_remote(legal)
            return WaitResult.APPLIED

    def close(self) -> None:
        self.stream.close()

    # -- Internal helpers --
    def _apply_local(self, move: Move) -> Move:
        """Propose + accept in one go: the host is its own authority."""
        proposed = self.exchange.propose()
        legal = self.current_snapshot().find(
            coerce_promotion(move, self.current_snapshot().position)
        )
        if legal is None:
            raise IllegalMoveError(f"Move not allowed: {move.to_uci()}")

        self._play(legal)
        self.exchange = proposed.accept(snapshot_from_oracle(self.oracle, self.board))
        self._log_move(legal, self.color)
        return legal

    def _apply_remote(self, move: Move) -> None:
        self._play(move)
        self.exchange = self.exchange.remote_applied(
            snapshot_from_oracle(self.oracle, self.board)
        )
        self.rejections = 0
        self._log_move(move, self.color.opponent)
        self.stream.send(
            HostState(**snapshot_fields(self.current_snapshot()), move_applied=move_to_wire(move))
        )
        self._update_record()

    def _play(self, move: Move) -> None:
        oracle_move = oracle_move_for(self.oracle, self.board, move)
        self.board = self.oracle.apply_move(self.board, oracle_move)
        self.last_move = move

    def _refuse(self, reason: str) -> None:
        """Echo the refusal (with the unchanged state) back to the client. Too many in one turn: hang up."""
        self.rejections += 1
        log.warning("Refused client request (%d in a row): %s", self.rejections, reason)

        if self.max_rejections is not None and self.rejections > self.max_rejections:
            reason = f"{reason}; too many refused requests, closing connection"
            self.stream.send(HostError(**snapshot_fields(self.current_snapshot()), message=reason))
            self.close()
            raise RetryLimitExceeded(
                f"Client sent {self.rejections} refused requests in a single turn."
            )
        self.stream.send(HostError(**snapshot_fields(self.current_snapshot()), message=reason))

    def _log_move(self, move: Move, mover: Color) -> None:
        log.info("Ply %d: %s played %s", self.exchange.ply, mover, move.to_uci())
        if self.exchange.is_over:
            log.info(
                "Game over: %s, final position %s",
                self.exchange.snapshot.outcome,
                self.exchange.snapshot.position.to_fen(),
            )

    # --- GAME RECORD ---
    def _to_record(self) -> GameRecord:
        return GameRecord(
            host_color=self.color.value,
            starting_fen=chess.STARTING_FEN,
            current_fen=self.board.fen(),
            moves_uci=[move.uci() for move in self.board.move_stack],
            outcome=self.exchange.snapshot.outcome.value,
        )

    def _start_record(self) -> None:
        if self.recorder is None:
            return
        _, self.record_id = self.recorder.create_record(self._to_record())

    def _update_record(self) -> None:
        if self.recorder is None or self.record_id is None:
            return
        if self.recorder.update_record(self.record_id, self._to_record()) is None:
            raise RecordError(f"Game record {self.record_id} disappeared from the journal.")
