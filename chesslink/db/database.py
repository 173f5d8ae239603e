"""Generate database sessions for the game journal"""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from chesslink.db.schema import Base
from chesslink.db.sql_repository import SQLGameRecordRepository


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    engine = create_engine(database_url, echo=echo)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def open_record_repository(database_url: str) -> SQLGameRecordRepository:
    """One session for the lifetime of the (single) game served by a host process."""
    session_factory = create_session_factory(database_url)
    return SQLGameRecordRepository(session_factory())
