"""
Client role: the non-authoritative side.

Holds a mirror of the host's snapshot and nothing else: no oracle, no legality checks. The mirror is only ever
replaced by what the host sends.
"""

import logging
from typing import Optional, Self

from pydantic import BaseModel

from chesslink.board.moves import Move
from chesslink.board.snapshot import Snapshot
from chesslink.board.square import Square
from chesslink.core.exceptions import GameError, InvalidPieceEncoding, MalformedMessageError
from chesslink.core.shared_types import Color, Feature
from chesslink.protocol.codec import (
    coerce_promotion,
    move_from_wire,
    move_to_wire,
    snapshot_from_message,
)
from chesslink.protocol.exchange import MoveExchange, Phase, ProposalResult, WaitResult
from chesslink.protocol.handshake import request_handshake, starting_ply
from chesslink.protocol.messages import (
    HOST_REPLY,
    HOST_STATE,
    DrawOffer,
    HostState,
    MoveProposal,
    Resign,
    SnapshotMessage,
    parse_message,
)
from chesslink.protocol.transport import JsonStream

log = logging.getLogger(__name__)


class ClientRole:
    def __init__(
        self,
        stream: JsonStream,
        exchange: MoveExchange,
        features: Optional[list[Feature]] = None,
    ) -> None:
        self.stream = stream
        self.exchange = exchange
        self.features = features or []
        self.last_move: Optional[Move] = None
        self.last_error: Optional[str] = None

    @classmethod
    def request_game(cls, stream: JsonStream, requested_host_color: Color) -> Self:
        """Run the handshake on a freshly opened connection (blocks). Any failure closes the connection."""
        try:
            reply = request_handshake(stream, requested_host_color)
            snapshot = snapshot_from_message(reply)
        except GameError:
            stream.close()
            raise

        exchange = MoveExchange.start(
            requested_host_color.opponent, starting_ply(requested_host_color), snapshot
        )
        return cls(stream, exchange, reply.features)

    @property
    def color(self) -> Color:
        return self.exchange.local_color

    def current_snapshot(self) -> Snapshot:
        return self.exchange.snapshot

    def get_legal_moves(self, from_square: Square) -> dict[Square, Move]:
        """Filter the cached legal moves by origin. Nothing to offer while the host has the move."""
        if self.exchange.phase != Phase.AWAITING_LOCAL_SELECTION:
            return {}
        return self.exchange.snapshot.moves_from(from_square)

    def submit_move(self, move: Move) -> ProposalResult:
        return self.propose_move(move)

    def propose_move(self, move: Move) -> ProposalResult:
        """
        Send a move to the host and wait for its verdict (blocks for exactly one reply).
        ---
        * ACCEPTED: the mirror now shows the position after the move; the host has the move
        * REJECTED: still your turn; the mirror is refreshed from the Error message anyway
        * FAILED: the reply was not a State / Error message; nothing changed
        """
        self.exchange = self.exchange.propose()
        move = coerce_promotion(move, self.exchange.snapshot.position)
        return self._request(MoveProposal(move=move_to_wire(move)))

    def resign(self) -> ProposalResult:
        """Accepted on the wire, but not implemented by the host: expect REJECTED ('unsupported operation')."""
        self.exchange = self.exchange.propose()
        return self._request(Resign())

    def offer_draw(self) -> ProposalResult:
        """Accepted on the wire, but not implemented by the host: expect REJECTED ('unsupported operation')."""
        self.exchange = self.exchange.propose()
        return self._request(DrawOffer())

    def await_opponent(self) -> WaitResult:
        """Pick up the host's move if it already arrived. Never blocks."""
        self.exchange.assert_awaiting_remote()
        try:
            document = self.stream.poll()
            if document is None:
                return WaitResult.NOT_READY
            update = parse_message(document, HOST_STATE)
        except MalformedMessageError as exc:
            log.warning("Ignoring unexpected message while waiting for the host: %s", exc)
            return WaitResult.FAILED

        self.exchange = self.exchange.remote_applied(self._mirror(update))
        self.last_move = move_from_wire(update.move_applied)
        log.info("Host played %s", self.last_move.to_uci())
        if self.exchange.is_over:
            log.info("Game over: %s", self.exchange.snapshot.outcome)
        return WaitResult.APPLIED

    def close(self) -> None:
        self.stream.close()

    # -- Internal helpers --
    def _request(self, request: BaseModel) -> ProposalResult:
        """Send, then interpret the very next document positionally: State or Error, nothing else."""
        self.stream.send(request)
        try:
            reply = parse_message(self.stream.receive(), HOST_REPLY)
        except MalformedMessageError as exc:
            log.warning("Reply to %s was not understood: %s", request, exc)
            self.exchange = self.exchange.fail()
            return ProposalResult.FAILED

        snapshot = self._mirror(reply)
        if isinstance(reply, HostState):
            self.exchange = self.exchange.accept(snapshot)
            self.last_move = move_from_wire(reply.move_applied)
            self.last_error = None
            if self.exchange.is_over:
                log.info("Game over: %s", snapshot.outcome)
            return ProposalResult.ACCEPTED

        self.last_error = reply.message
        log.warning("Host refused: %s", reply.message)
        self.exchange = self.exchange.reject(snapshot)
        return ProposalResult.REJECTED

    def _mirror(self, message: SnapshotMessage) -> Snapshot:
        """Decode the host's state. An unknown piece encoding means the two sides do not speak the same format."""
        try:
            return snapshot_from_message(message)
        except InvalidPieceEncoding:
            self.close()
            raise
