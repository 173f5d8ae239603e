"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True, order=True)
class Square:
    """Zero-based coordinates: a1 is (0, 0), h8 is (7, 7)."""

    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (0,0) - (7,7)"""
        file = ord(sq[0].lower()) - ord("a")
        rank = int(sq[1]) - 1
        return cls(file, rank)

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a'))}{self.rank + 1}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.file < BOARD_DIMENSIONS[0]) and (
            0 <= self.rank < BOARD_DIMENSIONS[1]
        )


def all_squares() -> list[Square]:
    """a1, b1, ..., h1, a2, ..., h8"""
    return [
        Square(file, rank)
        for rank in range(BOARD_DIMENSIONS[1])
        for file in range(BOARD_DIMENSIONS[0])
    ]
