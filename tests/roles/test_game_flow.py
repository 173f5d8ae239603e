"""Both roles talking to each other over a real connection.

The host runs in a background thread whenever the client blocks (handshake, waiting for the verdict on a
proposal); otherwise the test alternates the two sides by hand, like two render loops would.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import pytest

from chesslink.board.moves import Move
from chesslink.board.pieces import Piece
from chesslink.board.square import Square
from chesslink.core.exceptions import GameOverError
from chesslink.core.shared_types import Color, Outcome, PieceType
from chesslink.protocol.exchange import Phase, ProposalResult, WaitResult
from chesslink.protocol.transport import JsonStream
from chesslink.roles.base import GameRole
from chesslink.roles.client import ClientRole
from chesslink.roles.host import HostRole

StreamPair = tuple[JsonStream, JsonStream]
Poller = Callable[[GameRole], WaitResult]


def connect(
    stream_pair: StreamPair,
    background: ThreadPoolExecutor,
    requested_host_color: Color,
) -> tuple[HostRole, ClientRole]:
    host_stream, client_stream = stream_pair
    serving = background.submit(
        HostRole.accept_handshake,
        host_stream,
        choose_opening=lambda snapshot: Move.from_uci("e2e4"),
    )
    client = ClientRole.request_game(client_stream, requested_host_color)
    return serving.result(timeout=5), client


def client_plays(
    client: ClientRole,
    host: HostRole,
    uci: str,
    background: ThreadPoolExecutor,
    poll_until_applied: Poller,
) -> ProposalResult:
    handled = background.submit(poll_until_applied, host)
    result = client.propose_move(Move.from_uci(uci))
    assert handled.result(timeout=5) == WaitResult.APPLIED
    return result


def host_plays(client: ClientRole, host: HostRole, uci: str, poll_until_applied: Poller) -> None:
    assert host.submit_move(Move.from_uci(uci)) == ProposalResult.ACCEPTED
    assert poll_until_applied(client) == WaitResult.APPLIED


def test_both_sides_agree_after_handshake(
    stream_pair: StreamPair, background: ThreadPoolExecutor
) -> None:
    host, client = connect(stream_pair, background, Color.BLACK)
    assert host.color == Color.BLACK
    assert client.color == Color.WHITE
    assert client.current_snapshot() == host.current_snapshot()
    assert client.exchange.ply == host.exchange.ply == 0


def test_host_opening_reaches_client(
    stream_pair: StreamPair, background: ThreadPoolExecutor
) -> None:
    host, client = connect(stream_pair, background, Color.WHITE)
    assert client.color == Color.BLACK
    assert client.exchange.ply == host.exchange.ply == 1
    assert client.exchange.phase == Phase.AWAITING_LOCAL_SELECTION
    assert client.current_snapshot() == host.current_snapshot()
    assert client.current_snapshot().position.piece(Square.from_algebraic("e4")) == Piece(
        PieceType.PAWN, Color.WHITE
    )


def test_turns_alternate(
    stream_pair: StreamPair,
    background: ThreadPoolExecutor,
    poll_until_applied: Poller,
) -> None:
    """Every applied move advances both plies by one; the snapshots never drift apart."""
    host, client = connect(stream_pair, background, Color.BLACK)
    game = ["e2e4", "c7c5", "g1f3", "d7d6", "d2d4", "c5d4", "f3d4", "g8f6"]

    for ply, uci in enumerate(game, start=1):
        if client.exchange.is_local_turn:
            result = client_plays(client, host, uci, background, poll_until_applied)
            assert result == ProposalResult.ACCEPTED
        else:
            host_plays(client, host, uci, poll_until_applied)
        assert client.exchange.ply == host.exchange.ply == ply
        assert client.current_snapshot() == host.current_snapshot()
        assert client.exchange.is_local_turn != host.exchange.is_local_turn


def test_illegal_client_move_and_retry(
    stream_pair: StreamPair,
    background: ThreadPoolExecutor,
    poll_until_applied: Poller,
) -> None:
    host, client = connect(stream_pair, background, Color.BLACK)
    proposing = background.submit(client.propose_move, Move.from_uci("e2e5"))

    # the client blocks until the host got around to it
    deadline = time.monotonic() + 5
    while host.rejections == 0 and time.monotonic() < deadline:
        assert host.await_opponent() == WaitResult.NOT_READY
        time.sleep(0.005)
    assert proposing.result(timeout=5) == ProposalResult.REJECTED
    assert client.exchange.ply == host.exchange.ply == 0
    assert client.last_error is not None

    result = client_plays(client, host, "e2e4", background, poll_until_applied)
    assert result == ProposalResult.ACCEPTED
    assert client.exchange.ply == host.exchange.ply == 1


def test_fools_mate(
    stream_pair: StreamPair,
    background: ThreadPoolExecutor,
    poll_until_applied: Poller,
) -> None:
    host, client = connect(stream_pair, background, Color.BLACK)

    client_plays(client, host, "f2f3", background, poll_until_applied)
    host_plays(client, host, "e7e5", poll_until_applied)
    client_plays(client, host, "g2g4", background, poll_until_applied)
    host_plays(client, host, "d8h4", poll_until_applied)

    for role in (host, client):
        assert role.exchange.phase == Phase.GAME_OVER
        assert role.current_snapshot().outcome == Outcome.CHECKMATE_BLACK
        assert role.current_snapshot().legal_moves == frozenset()
    with pytest.raises(GameOverError):
        client.propose_move(Move.from_uci("e2e4"))
    with pytest.raises(GameOverError):
        host.submit_move(Move.from_uci("a7a6"))


def test_client_promotes_to_queen(
    stream_pair: StreamPair,
    background: ThreadPoolExecutor,
    poll_until_applied: Poller,
) -> None:
    host, client = connect(stream_pair, background, Color.BLACK)
    game = ["h2h4", "g7g5", "h4g5", "a7a6", "g5g6", "a6a5", "g6h7", "a5a4"]
    for uci in game:
        if client.exchange.is_local_turn:
            client_plays(client, host, uci, background, poll_until_applied)
        else:
            host_plays(client, host, uci, poll_until_applied)

    # takes the knight, asks for a knight, gets a queen
    promotion = Move(Square.from_algebraic("h7"), Square.from_algebraic("g8"), PieceType.KNIGHT)
    handled = background.submit(poll_until_applied, host)
    assert client.propose_move(promotion) == ProposalResult.ACCEPTED
    assert handled.result(timeout=5) == WaitResult.APPLIED

    assert client.last_move.promote_to == PieceType.QUEEN
    assert client.current_snapshot().position.piece(Square.from_algebraic("g8")) == Piece(
        PieceType.QUEEN, Color.WHITE
    )
    assert client.current_snapshot() == host.current_snapshot()
