import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config import get_database_url


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_engine_url: Optional[str] = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """Return a SQLModel engine, creating it if needed."""
    global _engine, _engine_url
    database_url = get_database_url()
    if _engine is None or database_url != _engine_url:
        connect_args = {}
        engine_kwargs = {"echo": False}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if database_url == "sqlite://":
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True
        _engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)
        if database_url.startswith("sqlite"):
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        _engine_url = database_url
        logger.debug("Created database engine for backend %s", _engine.url.get_backend_name())
    return _engine


def init_db() -> None:
    """Optionally create all tables in dev environments.

    In production, rely on Alembic migrations. Enable this dev helper by setting
    SQLMODEL_CREATE_ALL=1 (or 'true').
    """
    from . import models  # noqa: F401  registers tables on SQLModel.metadata

    database_url = get_database_url()
    engine = get_engine()
    if database_url == "sqlite://":
        # In-memory sqlite for tests/dev: reset schema each init for isolation
        SQLModel.metadata.drop_all(engine)
        SQLModel.metadata.create_all(engine)
        return
    if os.getenv("SQLMODEL_CREATE_ALL", "0") in ("1", "true", "TRUE"):
        SQLModel.metadata.create_all(engine)


def _session_scope() -> Iterator[Session]:
    with Session(get_engine()) as session:
        yield session


@contextmanager
def get_session_ctx() -> Iterator[Session]:
    yield from _session_scope()


def get_session() -> Iterator[Session]:
    yield from _session_scope()


def is_postgres() -> bool:
    try:
        name = get_engine().url.get_backend_name()
    except Exception:  # noqa: BLE001
        # Fallback parse
        database_url = get_database_url()
        name = database_url.split(":", 1)[0] if ":" in database_url else ""
    return name.startswith("postgres")
