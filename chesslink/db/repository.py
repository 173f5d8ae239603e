"""Protocol repository: where the host journals the game it arbitrates."""

from typing import Protocol
from uuid import UUID

from chesslink.core.models import GameRecord


class GameRecordRepository(Protocol):
    """Persistence layer orchestration"""

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        ...

    def create_record(self, record: GameRecord) -> tuple[GameRecord, UUID]:
        """Store new record and return the stored data + newly created ID."""
        ...

    def update_record(self, record_id: UUID, record: GameRecord) -> GameRecord | None:
        """Overwrite an existing record."""
        ...

    def delete_record(self, record_id: UUID) -> GameRecord | None:
        """Remove a record."""
        ...
