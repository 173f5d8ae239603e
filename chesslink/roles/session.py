"""
Connection setup: the single place where it is decided which end of the protocol this process plays.

The choice is an explicit tag (RoleKind) made once; the rest of the application only talks to the GameRole it gets back.
"""

import logging
import socket
from enum import Enum, auto
from typing import Optional

from chesslink.core.config import Settings
from chesslink.core.exceptions import ConnectionFailure
from chesslink.db.database import open_record_repository
from chesslink.oracle.rules import RulesOracle
from chesslink.protocol.transport import JsonStream
from chesslink.roles.base import GameRole
from chesslink.roles.client import ClientRole
from chesslink.roles.host import HostRole, OpeningMoveSelector, fixed_opening
from chesslink.roles.local import LocalRole

log = logging.getLogger(__name__)


class RoleKind(Enum):
    HOST = auto()
    CLIENT = auto()
    # both players at this process, no connection
    LOCAL = auto()


def listen_for_client(settings: Settings) -> JsonStream:
    """Serve exactly one connection, then stop listening."""
    address = (settings.listen_address, settings.port)
    try:
        with socket.create_server(address) as listener:
            log.info("Waiting for a client on %s:%d", *address)
            sock, peer = listener.accept()
    except OSError as exc:
        raise ConnectionFailure(f"Could not accept a client on {address}: {exc}") from exc
    log.info("Connected to %s:%d", *peer[:2])
    return JsonStream(sock)


def connect_to_host(settings: Settings) -> JsonStream:
    address = (settings.host_address, settings.port)
    try:
        sock = socket.create_connection(address)
    except OSError as exc:
        raise ConnectionFailure(f"Could not connect to {address}: {exc}") from exc
    log.info("Connected to host %s:%d", *address)
    return JsonStream(sock)


def open_session(
    kind: RoleKind,
    settings: Settings,
    choose_opening: Optional[OpeningMoveSelector] = None,
    oracle: Optional[RulesOracle] = None,
) -> GameRole:
    """
    Open the connection and run the handshake (blocks until both are done).
    ---
    * HOST: listen, serve the handshake. If the client asks the host to play white, the host opens with
      `choose_opening`, or else with `settings.host_opening`.
    * CLIENT: connect, request `settings.requested_host_color` for the host.
    * LOCAL: no connection, nothing blocks.
    """
    if kind == RoleKind.LOCAL:
        return LocalRole.new_game(oracle)
    if kind == RoleKind.HOST:
        recorder = (
            open_record_repository(settings.database_url)
            if settings.database_url
            else None
        )
        return HostRole.accept_handshake(
            listen_for_client(settings),
            oracle=oracle,
            choose_opening=choose_opening or fixed_opening(settings.host_opening),
            max_rejections=settings.max_rejections,
            recorder=recorder,
        )
    return ClientRole.request_game(
        connect_to_host(settings), settings.requested_host_color
    )
