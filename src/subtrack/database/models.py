"""SQLAlchemy models for the subtrack store."""

from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()

# Version written alongside every collection. Bump it when the record
# layout changes.
CURRENT_SCHEMA_VERSION = 1


class Collection(Base):
    """One persisted logical collection, stored as a JSON blob."""

    __tablename__ = "collections"

    key = Column(String, primary_key=True)
    schema_version = Column(Integer, default=CURRENT_SCHEMA_VERSION, nullable=False)
    payload = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
