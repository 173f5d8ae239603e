"""Unit tests for chesslink/protocol/transport.py"""

import json

import pytest

from chesslink.core.exceptions import ConnectionFailure, MalformedMessageError
from chesslink.core.shared_types import Color
from chesslink.protocol.messages import ClientHandshake, Resign
from chesslink.protocol.transport import JsonStream

StreamPair = tuple[JsonStream, JsonStream]


def write_raw(stream: JsonStream, text: str) -> None:
    """Bypass send() to control exactly which bytes go on the wire."""
    stream.sock.sendall(text.encode("utf-8"))


def test_send_and_receive(stream_pair: StreamPair) -> None:
    host, client = stream_pair
    client.send(ClientHandshake(requested_host_color=Color.WHITE))
    document = host.receive()
    assert json.loads(document) == {
        "type": "client_handshake",
        "requested_host_color": "white",
    }


def test_documents_written_back_to_back(stream_pair: StreamPair) -> None:
    """No separator, no length prefix: the braces delimit each document."""
    host, client = stream_pair
    write_raw(client, '{"type": "resign"}{"type": "draw_offer"}  \n{"type": "resign"}')
    assert json.loads(host.receive()) == {"type": "resign"}
    assert json.loads(host.poll()) == {"type": "draw_offer"}
    assert json.loads(host.poll()) == {"type": "resign"}
    assert host.poll() is None


def test_poll_without_data_does_not_block(stream_pair: StreamPair) -> None:
    host, _ = stream_pair
    assert host.poll() is None


@pytest.mark.parametrize(
    "first_half, second_half",
    [
        ('{"type": "re', 'sign"}'),
        ('{"type": "move", "move": {"start_x": 4, "start_y": 1, "end_x": 4, "end_y": 3, "promotion": nu', "ll}}"),
        ('{"type": "move", "move": {"start_x": 4, "start_y": 1, "end_x": 4, "end_y": 3, "capture": fa', "lse}}"),
        ('{"type": "resign"', "}"),
        ("{", '"type": "resign"}'),
        ('{"message": "caf\\u00', 'e9"}'),
        ('{"message": "caf\\u', '00e9"}'),
        ('{"message": "caf\\u00e9', '"}'),
        ('{"message": "caf\\', 'u00e9"}'),
    ],
)
def test_partial_document_is_not_ready(
    stream_pair: StreamPair, first_half: str, second_half: str
) -> None:
    """Half a document is 'not ready', never 'malformed'."""
    host, client = stream_pair
    write_raw(client, first_half)
    assert host.poll() is None
    write_raw(client, second_half)
    document = host.poll()
    assert document is not None
    assert json.loads(document) == json.loads(first_half + second_half)


def test_multibyte_character_split_across_reads(stream_pair: StreamPair) -> None:
    host, client = stream_pair
    encoded = '{"message": "Zug ungültig"}'.encode("utf-8")
    split = encoded.index("ü".encode("utf-8")) + 1  # in the middle of the two-byte sequence
    client.sock.sendall(encoded[:split])
    assert host.poll() is None
    client.sock.sendall(encoded[split:])
    assert json.loads(host.poll()) == {"message": "Zug ungültig"}


def test_garbage_is_malformed_and_discarded(stream_pair: StreamPair) -> None:
    host, client = stream_pair
    write_raw(client, "]]]")
    with pytest.raises(MalformedMessageError):
        host.poll()

    # the stream is usable again for the next document
    client.send(Resign())
    assert json.loads(host.poll()) == {"type": "resign"}


def test_receive_on_closed_connection(stream_pair: StreamPair) -> None:
    host, client = stream_pair
    client.close()
    with pytest.raises(ConnectionFailure):
        host.receive()


def test_poll_on_closed_connection(stream_pair: StreamPair) -> None:
    """A closed stream is terminal, not 'not ready'."""
    host, client = stream_pair
    client.close()
    with pytest.raises(ConnectionFailure):
        host.poll()


def test_buffered_documents_survive_peer_close(stream_pair: StreamPair) -> None:
    """Whatever arrived before the close can still be read."""
    host, client = stream_pair
    client.send(Resign())
    client.close()
    assert json.loads(host.receive()) == {"type": "resign"}
    with pytest.raises(ConnectionFailure):
        host.receive()


def test_close_twice(stream_pair: StreamPair) -> None:
    host, _ = stream_pair
    host.close()
    host.close()
    assert host.closed


def test_invalid_utf8_is_malformed_and_discarded(stream_pair: StreamPair) -> None:
    host, client = stream_pair
    client.sock.sendall(b'{"type": "move", \xff\xfe}')
    with pytest.raises(MalformedMessageError):
        host.poll()

    client.send(Resign())
    assert json.loads(host.receive()) == {"type": "resign"}


def test_invalid_escape_is_malformed(stream_pair: StreamPair) -> None:
    """Not hex digits: the escape can never become valid, whatever arrives next."""
    host, client = stream_pair
    write_raw(client, '{"message": "caf\\uzzzz"}')
    with pytest.raises(MalformedMessageError):
        host.poll()
