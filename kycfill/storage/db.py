"""Database utilities for vault persistence."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Iterator

from sqlalchemy import Column, DateTime, LargeBinary, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings

Base = declarative_base()


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(UTC)


class VaultRecordRow(Base):
    """Single encrypted value keyed by name (one vault per installation)."""

    __tablename__ = "vault_records"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class StoredFileRow(Base):
    """Binary attachment referenced from the profile by id."""

    __tablename__ = "stored_files"

    id = Column(String(128), primary_key=True)
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(128), nullable=False, default="application/octet-stream")
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


def _is_memory_url(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"}


class Database:
    """Owns the SQLAlchemy engine and hands out transactional sessions."""

    def __init__(self, url: str | None = None) -> None:
        self.url = url or get_settings().resolved_database_url()
        if _is_memory_url(self.url):
            # Worker threads must share the single in-memory connection.
            self._engine: Engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif self.url.startswith("sqlite"):
            self._engine = create_engine(self.url, connect_args={"check_same_thread": False})
        else:
            self._engine = create_engine(self.url, pool_pre_ping=True)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create database tables if they do not already exist."""

        Base.metadata.create_all(bind=self._engine)

    def dispose(self) -> None:
        self._engine.dispose()
