"""
Handshake: runs once, right after the connection is opened.

1. client -> host: ClientHandshake{requested_host_color}   (the client plays the other color)
2. host -> client: HostHandshake{features, board, moves, outcome}

When the host plays white, its opening move is already applied in (2): no extra round trip.
Both reads block. Any failure here aborts the game setup, there is no retry.
"""

import logging

from pydantic import TypeAdapter

from chesslink.board.snapshot import Snapshot
from chesslink.core.exceptions import HandshakeError, MalformedMessageError
from chesslink.core.shared_types import Color, Feature
from chesslink.protocol.codec import snapshot_fields
from chesslink.protocol.messages import (
    CLIENT_HANDSHAKE,
    HOST_HANDSHAKE,
    ClientHandshake,
    HostHandshake,
    Message,
    parse_message,
)
from chesslink.protocol.transport import JsonStream

log = logging.getLogger(__name__)

SUPPORTED_FEATURES: list[Feature] = [
    Feature.EN_PASSANT,
    Feature.CASTLING,
    Feature.PROMOTION,
]


def starting_ply(host_color: Color) -> int:
    """Number of plies already played when the handshake completes."""
    return 1 if host_color == Color.WHITE else 0


# --- CLIENT SIDE ---
def request_handshake(stream: JsonStream, requested_host_color: Color) -> HostHandshake:
    """Ask the host to play `requested_host_color`, and wait for the initial state."""
    stream.send(ClientHandshake(requested_host_color=requested_host_color))
    reply = _read(stream, HOST_HANDSHAKE)
    log.info(
        "Handshake done: playing %s, host supports %s",
        requested_host_color.opponent,
        ", ".join(reply.features) or "nothing",
    )
    return reply


# --- HOST SIDE ---
def read_client_handshake(stream: JsonStream) -> ClientHandshake:
    request = _read(stream, CLIENT_HANDSHAKE)
    log.info("Client asks the host to play %s", request.requested_host_color)
    return request


def send_host_handshake(stream: JsonStream, snapshot: Snapshot) -> HostHandshake:
    """The snapshot must come from the oracle: the client performs no legality computation of its own."""
    reply = HostHandshake(features=SUPPORTED_FEATURES, **snapshot_fields(snapshot))
    stream.send(reply)
    return reply


# -- Internal helpers --
def _read(stream: JsonStream, expected: TypeAdapter[Message]) -> Message:
    try:
        return parse_message(stream.receive(), expected)
    except MalformedMessageError as exc:
        raise HandshakeError(f"Handshake failed: {exc}") from exc
