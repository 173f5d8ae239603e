"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import socket
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generator

import chess
import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chesslink.board.snapshot import Snapshot
from chesslink.db.schema import Base
from chesslink.oracle.rules import PythonChessOracle
from chesslink.protocol.codec import snapshot_from_oracle
from chesslink.protocol.exchange import WaitResult
from chesslink.protocol.transport import JsonStream
from chesslink.roles.base import GameRole

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# Generous: only hit when a test is broken, never in a passing run
TIMEOUT_SECONDS = 5.0


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def stream_pair() -> Generator[tuple[JsonStream, JsonStream], None, None]:
    """(host end, client end) of one ordered, reliable, bidirectional connection."""
    host_sock, client_sock = socket.socketpair()
    host_stream, client_stream = JsonStream(host_sock), JsonStream(client_sock)
    try:
        yield host_stream, client_stream
    finally:
        host_stream.close()
        client_stream.close()


@pytest.fixture
def background() -> Generator[ThreadPoolExecutor, None, None]:
    """Runs the blocking half of an exchange (ex. the host serving the handshake) while the test drives the other half."""
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        yield executor
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


@pytest.fixture
def starting_snapshot() -> Snapshot:
    return snapshot_from_oracle(PythonChessOracle(), chess.Board())


@pytest.fixture
def poll_until_applied() -> Callable[[GameRole], WaitResult]:
    """Call await_opponent once per 'tick' (like a render loop would) until something other than NOT_READY comes back."""

    def _poll(role: GameRole) -> WaitResult:
        deadline = time.monotonic() + TIMEOUT_SECONDS
        while time.monotonic() < deadline:
            result = role.await_opponent()
            if result != WaitResult.NOT_READY:
                return result
            time.sleep(0.005)
        raise AssertionError("Opponent move never arrived")

    return _poll
