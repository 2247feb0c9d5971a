"""Database configuration for the ORM-backed collections."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .exceptions import StorageUnavailable

Base = declarative_base()


class Database:
    """Engine plus session factory handed to the services that need them."""

    def __init__(self, url: str, *, engine: Optional[Engine] = None) -> None:
        self.url = url
        self.engine = engine or create_engine(url, future=True, **_engine_options(url))
        self._sessions = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True
        )

    def create_all(self) -> None:
        """Create database tables if they do not already exist."""
        from . import orm  # noqa: F401  # Register models on the metadata

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"Unable to initialise database at {self.url}") from exc

    def drop_all(self) -> None:
        from . import orm  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageUnavailable(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {}
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory databases live per connection; share one across sessions.
        options["poolclass"] = StaticPool
    return options
