from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()

LOGGER = logging.getLogger(__name__)


def _create_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    options = {"echo": False, "future": True}
    if url.get_backend_name() == "sqlite":
        # Shared by the fetch worker threads.
        options["connect_args"] = {"check_same_thread": False}
        if not url.database or url.database == ":memory:":
            options["poolclass"] = StaticPool
        else:
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    else:
        options["pool_pre_ping"] = True
    return create_engine(url, **options)


class Database:
    """Engine and session factory with an explicit lifecycle."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not initialized")
        return self._engine

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def initialize(self) -> None:
        if self._engine is not None:
            return
        # Import models for side-effects so SQLAlchemy registers them with the metadata
        from slovo import models  # noqa: F401

        self._engine = _create_engine(self.database_url)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            autocommit=False,
            future=True,
            expire_on_commit=False,
        )
        Base.metadata.create_all(bind=self._engine)
        LOGGER.debug("Database ready at %s", self._engine.url)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._session_factory is None:
            raise RuntimeError("Database is not initialized")
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
