"""
Wire messages.

Every message is a single JSON object tagged with a "type" field. Documents are written back to back on the
stream; their own braces delimit them, there is no length prefix.
"""

from typing import Annotated, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from chesslink.board.square import BOARD_DIMENSIONS
from chesslink.core.exceptions import MalformedMessageError
from chesslink.core.shared_types import Color, Feature, Outcome, PieceType

# Rows of piece encodings, rank 0 (white's back rank) first
WireBoard = list[list[str]]
Coordinate = Annotated[int, Field(ge=0, le=BOARD_DIMENSIONS[0] - 1)]


class WireMove(BaseModel):
    start_x: Coordinate
    start_y: Coordinate
    end_x: Coordinate
    end_y: Coordinate
    promotion: Optional[PieceType] = None
    # presentation metadata only, never used to decide legality
    capture: bool = False
    en_passant: bool = False
    castle: bool = False


class SnapshotMessage(BaseModel):
    """Every host message carries the complete state, so the client can resync from the latest message alone."""

    board: WireBoard
    moves: list[WireMove]
    outcome: Outcome

    @field_validator("board")
    @classmethod
    def validate_board_shape(cls, value: WireBoard) -> WireBoard:
        files, ranks = BOARD_DIMENSIONS
        if len(value) != ranks or any(len(row) != files for row in value):
            raise ValueError(f"board must be {ranks} rows of {files} squares")
        return value


# --- HANDSHAKE ---
class ClientHandshake(BaseModel):
    type: Literal["client_handshake"] = "client_handshake"
    requested_host_color: Color


class HostHandshake(SnapshotMessage):
    type: Literal["host_handshake"] = "host_handshake"
    features: list[Feature]


# --- CLIENT -> HOST ---
class MoveProposal(BaseModel):
    type: Literal["move"] = "move"
    move: WireMove


class Resign(BaseModel):
    type: Literal["resign"] = "resign"


class DrawOffer(BaseModel):
    type: Literal["draw_offer"] = "draw_offer"


ClientMove = Annotated[
    Union[MoveProposal, Resign, DrawOffer], Field(discriminator="type")
]


# --- HOST -> CLIENT ---
class HostState(SnapshotMessage):
    type: Literal["state"] = "state"
    move_applied: WireMove


class HostError(SnapshotMessage):
    type: Literal["error"] = "error"
    message: str


HostReply = Annotated[Union[HostState, HostError], Field(discriminator="type")]

CLIENT_HANDSHAKE = TypeAdapter(ClientHandshake)
HOST_HANDSHAKE = TypeAdapter(HostHandshake)
CLIENT_MOVE = TypeAdapter(ClientMove)
HOST_REPLY = TypeAdapter(HostReply)
HOST_STATE = TypeAdapter(HostState)

Message = TypeVar("Message")


def parse_message(document: str, expected: TypeAdapter[Message]) -> Message:
    """
    Interpret a document for the slot it arrived in.
    ---
    Anything that does not validate against the expected shape(s) is a protocol violation for this call only.
    """
    try:
        return expected.validate_json(document)
    except ValidationError as exc:
        raise MalformedMessageError(
            f"Unexpected document {document[:80]!r}: {exc.error_count()} validation error(s)"
        ) from exc
