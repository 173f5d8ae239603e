"""
Custom exceptions
---
All derive from GameError, so callers can catch a single top-level type.

NOTE: none of these subclass ValueError. Pydantic would otherwise wrap them in a ValidationError
when they are raised inside a validator, and the caller would lose the specific type.
"""


class GameError(Exception):
    """Top level exception for anything that went wrong while playing over the connection."""


# --- Wire format ---
class InvalidPieceEncoding(GameError):
    """Wire value does not denote any piece. Implies a wire-format mismatch: fatal to the connection."""


class MalformedMessageError(GameError):
    """Document in a given slot is not valid JSON, or not the kind of message expected there."""


class HandshakeError(GameError):
    """Handshake could not be completed. There is no retry."""


# --- Connection ---
class ConnectionFailure(GameError):
    """Stream closed, or a read/write failed. Unrecoverable for the protocol instance."""


class RetryLimitExceeded(ConnectionFailure):
    """Opponent kept sending illegal proposals within a single turn. Host closed the connection."""


# --- Game state ---
class NotYourTurnError(GameError):
    """Operation called while the other side has the move."""


class MoveInFlightError(GameError):
    """A second proposal was made before the reply to the first one arrived."""


class GameOverError(GameError):
    """The game has ended. No further moves are accepted."""


class IllegalMoveError(GameError):
    """Move is not in the current set of legal moves."""


# --- Persistence ---
class RecordError(GameError):
    """Game record could not be found or stored."""


# --- Configuration ---
class ConfigurationError(GameError):
    """Settings could not be interpreted."""
