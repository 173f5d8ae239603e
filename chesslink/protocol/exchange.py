"""
Move exchange state machine.

    AWAITING_LOCAL_SELECTION --propose--> LOCAL_MOVE_PROPOSED --accepted--> AWAITING_REMOTE_MOVE
              ^                                  |                                 |
              +------------rejected / failed-----+                                 |
              +-------------------------remote move applied------------------------+

GAME_OVER is entered from any transition that carries a finished outcome, and is never left.

MoveExchange is an immutable value. Every transition returns a new one: the role that owns it reassigns
its attribute, nothing is mutated behind the caller's back. Turn order follows from the ply counter:
white moves on even plies, black on odd ones.
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Self

from chesslink.board.snapshot import Snapshot
from chesslink.core.exceptions import GameOverError, MoveInFlightError, NotYourTurnError
from chesslink.core.shared_types import Color


class Phase(Enum):
    AWAITING_LOCAL_SELECTION = auto()
    LOCAL_MOVE_PROPOSED = auto()
    AWAITING_REMOTE_MOVE = auto()
    GAME_OVER = auto()


class ProposalResult(Enum):
    """How the LOCAL_MOVE_PROPOSED phase was left."""

    ACCEPTED = auto()
    REJECTED = auto()
    # reply was not a State / Error message: nothing changed, the caller decides whether to resubmit
    FAILED = auto()


class WaitResult(Enum):
    NOT_READY = auto()
    APPLIED = auto()
    FAILED = auto()


def side_to_move(ply: int) -> Color:
    return Color.WHITE if ply % 2 == 0 else Color.BLACK


@dataclass(frozen=True)
class MoveExchange:
    local_color: Color
    ply: int
    snapshot: Snapshot
    phase: Phase

    @classmethod
    def start(cls, local_color: Color, ply: int, snapshot: Snapshot) -> Self:
        """State right after the handshake."""
        return cls(local_color, ply, snapshot, cls._resting_phase(local_color, ply, snapshot))

    @property
    def is_local_turn(self) -> bool:
        return side_to_move(self.ply) == self.local_color

    @property
    def is_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    # --- TRANSITIONS ---
    def propose(self) -> Self:
        """Local player committed to a move. At most one proposal can be in flight."""
        self._assert_not_over()
        if self.phase == Phase.LOCAL_MOVE_PROPOSED:
            raise MoveInFlightError("Still waiting for the reply to the previous proposal.")
        if self.phase != Phase.AWAITING_LOCAL_SELECTION:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.local_color.opponent} to make a move first."
            )
        return replace(self, phase=Phase.LOCAL_MOVE_PROPOSED)

    def accept(self, snapshot: Snapshot) -> Self:
        """Local move applied by the authoritative side. Turn passes to the opponent."""
        self._assert_phase(Phase.LOCAL_MOVE_PROPOSED)
        return self._advance(snapshot)

    def reject(self, snapshot: Snapshot) -> Self:
        """
        Local move refused. Same turn, choose again.
        ---
        The snapshot is refreshed anyway, in case the mirror drifted from the host.
        """
        self._assert_phase(Phase.LOCAL_MOVE_PROPOSED)
        return replace(
            self,
            snapshot=snapshot,
            phase=self._resting_phase(self.local_color, self.ply, snapshot),
        )

    def fail(self) -> Self:
        """Reply could not be interpreted. Keep the last known good state."""
        self._assert_phase(Phase.LOCAL_MOVE_PROPOSED)
        return replace(self, phase=Phase.AWAITING_LOCAL_SELECTION)

    def remote_applied(self, snapshot: Snapshot) -> Self:
        """Opponent's move arrived (client) or was validated and applied (host)."""
        self.assert_awaiting_remote()
        return self._advance(snapshot)

    def switch_sides(self) -> Self:
        """Both colors played at one board: whoever has the move becomes the local player."""
        local_color = side_to_move(self.ply)
        return replace(
            self,
            local_color=local_color,
            phase=self._resting_phase(local_color, self.ply, self.snapshot),
        )

    def assert_awaiting_remote(self) -> None:
        """Waiting is only allowed while the opponent has the move."""
        self._assert_not_over()
        if self.phase != Phase.AWAITING_REMOTE_MOVE:
            raise NotYourTurnError("It is your turn: there is no opponent move to wait for.")

    # -- PRIVATE HELPERS ---
    def _advance(self, snapshot: Snapshot) -> Self:
        ply = self.ply + 1
        return replace(
            self,
            ply=ply,
            snapshot=snapshot,
            phase=self._resting_phase(self.local_color, ply, snapshot),
        )

    @staticmethod
    def _resting_phase(local_color: Color, ply: int, snapshot: Snapshot) -> Phase:
        if snapshot.outcome.is_over:
            return Phase.GAME_OVER
        if side_to_move(ply) == local_color:
            return Phase.AWAITING_LOCAL_SELECTION
        return Phase.AWAITING_REMOTE_MOVE

    def _assert_not_over(self) -> None:
        if self.phase == Phase.GAME_OVER:
            raise GameOverError(f"Game is over: {self.snapshot.outcome}")

    def _assert_phase(self, expected: Phase) -> None:
        self._assert_not_over()
        if self.phase != expected:
            raise NotYourTurnError(
                f"Cannot resolve a proposal in phase {self.phase.name}, expected {expected.name}."
            )
