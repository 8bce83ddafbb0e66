"""Engine, session factory and transactional session scope"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import DatabaseSettings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: DatabaseSettings) -> Engine:
    """Create the engine for the configured URL"""
    connect_args = {}
    is_sqlite = settings.url.startswith("sqlite")
    if is_sqlite:
        # One request may hop threads under the ASGI server
        connect_args = {"check_same_thread": False, "timeout": 30}

    engine = create_engine(settings.url, echo=settings.echo, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory; loaded attributes stay readable after commit"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """One unit of work: commit on success, roll back on any exception"""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
