"""Implementation of GameRecordRepository using SQLAlchemy"""

from contextlib import contextmanager
from typing import Iterator
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chesslink.core.exceptions import RecordError
from chesslink.core.models import GameRecord
from chesslink.db.schema import DBGameRecord


class SQLGameRecordRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_record(self, record_id: UUID) -> GameRecord | None:
        """Get record by ID, if it exists."""
        with self._storage_errors("read record"):
            record_db = self._fetch_record(record_id)
            if record_db:
                return self._to_model(record_db)
            return None

    def create_record(self, record: GameRecord) -> tuple[GameRecord, UUID]:
        """Store new record and return the stored data + newly created ID."""
        new_id = uuid4()
        with self._storage_errors("create record"):
            record_db = DBGameRecord(
                id=new_id,
                host_color=record.host_color,
                starting_fen=record.starting_fen,
                current_fen=record.current_fen,
                moves_uci=list(record.moves_uci),
                outcome=record.outcome,
            )
            self.db.add(record_db)
            self.db.commit()
            self.db.refresh(record_db)
            return self._to_model(record_db), new_id

    def update_record(self, record_id: UUID, record: GameRecord) -> GameRecord | None:
        """Overwrite an existing record. Only the fields that change during a game are written."""
        with self._storage_errors("update record"):
            record_db = self._fetch_record(record_id)
            if not record_db:
                return None
            record_db.current_fen = record.current_fen
            # new list: JSON columns do not track in-place mutation
            record_db.moves_uci = list(record.moves_uci)
            record_db.outcome = record.outcome
            self.db.commit()
            self.db.refresh(record_db)
            return self._to_model(record_db)

    def delete_record(self, record_id: UUID) -> GameRecord | None:
        """Remove a record."""
        with self._storage_errors("delete record"):
            record_db = self._fetch_record(record_id)
            if not record_db:
                return None
            record = self._to_model(record_db)
            self.db.delete(record_db)
            self.db.commit()
            return record

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        """Database failures surface as RecordError. The session is rolled back so it stays usable."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RecordError(f"Could not {action}: {exc}") from exc

    def _fetch_record(self, record_id: UUID) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == record_id)
        return self.db.scalar(query)

    def _to_model(self, record_db: DBGameRecord) -> GameRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecord(
            host_color=record_db.host_color,
            starting_fen=record_db.starting_fen,
            current_fen=record_db.current_fen,
            moves_uci=list(record_db.moves_uci),
            outcome=record_db.outcome,
        )
