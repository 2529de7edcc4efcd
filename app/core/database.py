from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
import logging

from sqlalchemy import Column, DateTime, create_engine, func
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_RECYCLE, DEBUG

logger = logging.getLogger(__name__)

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, echo=DEBUG)
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=DB_POOL_SIZE,
        max_overflow=DB_MAX_OVERFLOW,
        pool_recycle=DB_POOL_RECYCLE,
        echo=DEBUG,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for one request and always close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@dataclass(frozen=True)
class Active:
    """Record is visible to normal queries."""


@dataclass(frozen=True)
class Deleted:
    """Record was soft-deleted at the given time."""
    at: datetime


RecordState = Union[Active, Deleted]


class TimestampMixin:
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SoftDeleteMixin:
    """
    Soft delete support.

    The nullable ``deleted_at`` column is only the storage format; callers look at
    ``state`` and repositories filter with ``alive()`` so that deleted rows are
    excluded from every default query in one place.
    """
    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def state(self) -> RecordState:
        if self.deleted_at is None:
            return Active()
        return Deleted(at=self.deleted_at)

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.state, Deleted)

    @classmethod
    def alive(cls):
        return cls.deleted_at.is_(None)

    def soft_delete(self, at: Optional[datetime] = None) -> None:
        self.deleted_at = at or datetime.now()
