"""
Message stream over a single socket.

Documents are JSON objects written back to back. The reader finds the end of a document by decoding it,
so no length prefix or separator is needed (whitespace between documents is tolerated).

Two reading modes with different suspension contracts:
* receive(): blocks until a complete document arrived (handshake, reply to a proposal)
* poll(): never blocks, returns None when no complete document is available yet (waiting for the opponent)
"""

import codecs
import json
import logging
import select
import socket
import string
from typing import Optional

from pydantic import BaseModel

from chesslink.core.exceptions import ConnectionFailure, MalformedMessageError

log = logging.getLogger(__name__)

RECV_CHUNK_SIZE = 4096
_PARTIAL_TOKENS = ("true", "false", "null", "-")


class JsonStream:
    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self._text = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._decoder = json.JSONDecoder()
        self._closed = False

    # --- writing ---
    def send(self, message: BaseModel) -> None:
        document = message.model_dump_json()
        log.debug("-> %s", document)
        try:
            self.sock.sendall(document.encode("utf-8"))
        except OSError as exc:
            raise ConnectionFailure(f"Write failed: {exc}") from exc

    # --- reading ---
    def receive(self) -> str:
        """Next complete document. Blocks."""
        while True:
            document = self._next_document()
            if document is not None:
                return document
            self._fill()

    def poll(self) -> Optional[str]:
        """Next complete document if one is available right now, otherwise None. Never blocks."""
        while True:
            document = self._next_document()
            if document is not None:
                return document
            if not self._readable():
                return None
            # select() said so: this recv returns immediately (data, or b"" on a closed stream)
            self._fill()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # peer already gone
            pass
        self.sock.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # -- Internal helpers --
    def _readable(self) -> bool:
        try:
            readable, _, _ = select.select([self.sock], [], [], 0)
        except (OSError, ValueError) as exc:
            raise ConnectionFailure(f"Connection unusable: {exc}") from exc
        return bool(readable)

    def _fill(self) -> None:
        """Read one chunk into the buffer. A closed stream is terminal."""
        if self._closed:
            raise ConnectionFailure("Connection already closed")
        try:
            chunk = self.sock.recv(RECV_CHUNK_SIZE)
        except OSError as exc:
            raise ConnectionFailure(f"Read failed: {exc}") from exc
        if not chunk:
            raise ConnectionFailure("Connection closed by peer")
        try:
            self._text += self._utf8.decode(chunk)
        except UnicodeDecodeError as exc:
            # same as unparseable JSON: no way to tell where the next document starts
            self._text = ""
            self._utf8.reset()
            raise MalformedMessageError(f"Not UTF-8 text: {exc}") from exc

    def _next_document(self) -> Optional[str]:
        """
        Split the first complete document off the buffer.
        ---
        * incomplete document: None (wait for more bytes)
        * garbage: the buffer is discarded (there is no way to find the next document boundary) and
          MalformedMessageError is raised
        """
        self._text = self._text.lstrip()
        if not self._text:
            return None
        try:
            _, end = self._decoder.raw_decode(self._text)
        except json.JSONDecodeError as exc:
            if self._is_truncated(exc):
                return None
            garbage, self._text = self._text, ""
            raise MalformedMessageError(f"Not a JSON document: {garbage[:80]!r}") from exc

        document, self._text = self._text[:end], self._text[end:]
        log.debug("<- %s", document)
        return document

    def _is_truncated(self, exc: json.JSONDecodeError) -> bool:
        """The decoder ran off the end of the buffer, as opposed to hitting an invalid character."""
        if exc.pos >= len(self._text) or exc.msg.startswith("Unterminated string"):
            return True
        if exc.msg.startswith("Invalid \\uXXXX escape"):
            # escape cut short, ex. '"caf\\u00': the error points at the 'u'
            digits = self._text[exc.pos + 1 :]
            return len(digits) <= 4 and all(digit in string.hexdigits for digit in digits)
        # a literal or a sign cut in half by a chunk boundary, ex. '{"promotion": nu'
        tail = self._text[exc.pos :]
        return any(literal.startswith(tail) for literal in _PARTIAL_TOKENS)
