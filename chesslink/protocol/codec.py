"""
Position codec
---
Translates between three representations of the same things:
* the oracle's native objects (python-chess Board / Move / square indices), host side only
* the domain values (Position, Move, Square) that both roles work with
* the wire values (piece letters, WireMove, board rows) inside the JSON messages

Promotion is always normalized to a queen. Underpromotion cannot be requested through this protocol.
"""

from typing import Iterable

import chess

from chesslink.board.moves import LegalMoveSet, Move
from chesslink.board.pieces import EMPTY, FEN_TO_PIECE, Piece
from chesslink.board.position import Position
from chesslink.board.snapshot import Snapshot
from chesslink.board.square import BOARD_DIMENSIONS, Square
from chesslink.core.exceptions import IllegalMoveError, InvalidPieceEncoding
from chesslink.core.shared_types import PieceType
from chesslink.oracle.rules import RulesOracle
from chesslink.protocol.messages import SnapshotMessage, WireBoard, WireMove

EMPTY_SQUARE_ENCODING = " "

# upper case: white, lower case: black (same letters as FEN)
PIECE_ENCODING: dict[Piece, str] = {
    Piece.from_fen(letter): letter for letter in "PNBRQKpnbrqk"
}
PIECE_ENCODING[EMPTY] = EMPTY_SQUARE_ENCODING

PIECE_DECODING: dict[str, Piece] = {value: key for key, value in PIECE_ENCODING.items()}


# --- PIECES ---
def encode_piece(piece: Piece) -> str:
    try:
        return PIECE_ENCODING[piece]
    except KeyError:
        raise InvalidPieceEncoding(f"Cannot encode {piece!r}") from None


def decode_piece(value: str) -> Piece:
    try:
        return PIECE_DECODING[value]
    except (KeyError, TypeError):
        raise InvalidPieceEncoding(f"Not a piece encoding: {value!r}") from None


# --- ORACLE <-> DOMAIN ---
def square_from_oracle(square: chess.Square) -> Square:
    return Square(chess.square_file(square), chess.square_rank(square))


def square_to_oracle(square: Square) -> chess.Square:
    return chess.square(square.file, square.rank)


def to_wire_move(oracle_move: chess.Move, board: chess.Board) -> Move:
    """
    Describe an oracle move, given the board BEFORE the move is played.
    ---
    * capture: the destination square is occupied
    * en passant / castling: asked from the oracle (python-chess knows its own move semantics)
    """
    promote_to = (
        FEN_TO_PIECE[chess.piece_symbol(oracle_move.promotion)]
        if oracle_move.promotion
        else None
    )
    return Move(
        from_square=square_from_oracle(oracle_move.from_square),
        to_square=square_from_oracle(oracle_move.to_square),
        promote_to=promote_to,
        is_capture=board.piece_at(oracle_move.to_square) is not None,
        is_en_passant=board.is_en_passant(oracle_move),
        is_castle=board.is_castling(oracle_move),
    )


def to_oracle_query(move: Move) -> tuple[chess.Square, chess.Square]:
    """Endpoints to ask the oracle for the matching legal move."""
    return square_to_oracle(move.from_square), square_to_oracle(move.to_square)


def oracle_move_for(oracle: RulesOracle, board: chess.Board, move: Move) -> chess.Move:
    """The oracle's own move object with the same endpoints and promotion."""
    from_square, to_square = to_oracle_query(move)
    promotion = chess.QUEEN if move.promote_to else None
    for candidate in oracle.legal_moves(board, from_square, to_square):
        if candidate.promotion == promotion:
            return candidate
    raise IllegalMoveError(f"Oracle has no move {move.to_uci()}")


def position_from_oracle(board: chess.Board) -> Position:
    return Position.from_fen(board.board_fen())


def legal_moves_from_oracle(oracle: RulesOracle, board: chess.Board) -> LegalMoveSet:
    """Legal moves of the side to move. Of the four promotion choices only the queen is published."""
    return frozenset(
        to_wire_move(move, board)
        for move in oracle.legal_moves(board)
        if move.promotion in (None, chess.QUEEN)
    )


def snapshot_from_oracle(oracle: RulesOracle, board: chess.Board) -> Snapshot:
    return Snapshot(
        position=position_from_oracle(board),
        legal_moves=legal_moves_from_oracle(oracle, board),
        outcome=oracle.classify(board),
    )


def coerce_promotion(move: Move, position: Position) -> Move:
    """Promotion is set (to a queen) if and only if a pawn arrives on the far rank."""
    if position.is_promotion_square_for(move.from_square, move.to_square):
        return move.with_promotion(PieceType.QUEEN)
    return move.with_promotion(None)


# --- DOMAIN <-> WIRE ---
def position_to_wire(position: Position) -> WireBoard:
    files, ranks = BOARD_DIMENSIONS
    return [
        [encode_piece(position.piece(Square(file, rank))) for file in range(files)]
        for rank in range(ranks)
    ]


def position_from_wire(board: WireBoard) -> Position:
    """Raises InvalidPieceEncoding on any unknown square value."""
    return Position(
        {
            Square(file, rank): decode_piece(value)
            for rank, row in enumerate(board)
            for file, value in enumerate(row)
        }
    )


def move_to_wire(move: Move) -> WireMove:
    return WireMove(
        start_x=move.from_square.file,
        start_y=move.from_square.rank,
        end_x=move.to_square.file,
        end_y=move.to_square.rank,
        promotion=move.promote_to,
        capture=move.is_capture,
        en_passant=move.is_en_passant,
        castle=move.is_castle,
    )


def move_from_wire(wire: WireMove) -> Move:
    return Move(
        from_square=Square(wire.start_x, wire.start_y),
        to_square=Square(wire.end_x, wire.end_y),
        promote_to=wire.promotion,
        is_capture=wire.capture,
        is_en_passant=wire.en_passant,
        is_castle=wire.castle,
    )


def moves_to_wire(moves: Iterable[Move]) -> list[WireMove]:
    # sorted, so the same set always produces the same document
    return [move_to_wire(move) for move in sorted(moves, key=Move.to_uci)]


def moves_from_wire(moves: Iterable[WireMove]) -> LegalMoveSet:
    return frozenset(move_from_wire(move) for move in moves)


def snapshot_fields(snapshot: Snapshot) -> dict:
    """The board/moves/outcome part shared by every host message."""
    return {
        "board": position_to_wire(snapshot.position),
        "moves": moves_to_wire(snapshot.legal_moves),
        "outcome": snapshot.outcome,
    }


def snapshot_from_message(message: SnapshotMessage) -> Snapshot:
    return Snapshot(
        position=position_from_wire(message.board),
        legal_moves=moves_from_wire(message.moves),
        outcome=message.outcome,
    )
