"""
Boundary layer data model(s).

The GameRecord is the transport-safe summary of a played game that the host hands to the persistence layer.
(Decouples the DB schema from the live game objects)
"""

from dataclasses import dataclass, field

# Type aliases to make GameRecord easier to read
PieceColor = str
OutcomeName = str


@dataclass
class GameRecord:
    """Journal of a single connection's game, kept by the host."""

    host_color: PieceColor
    starting_fen: str
    current_fen: str
    moves_uci: list[str] = field(default_factory=list)
    outcome: OutcomeName = "ongoing"
