from collections.abc import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from budget_api.core.config import settings


class Base(DeclarativeBase):
    pass


# Created on first use so importing the app never opens a connection pool
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(settings.database_url, pool_pre_ping=True)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        # Templates are read once and then patched row by row; keep loaded
        # attributes usable across the per-item commits.
        _session_factory = sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


def get_db() -> Iterator[Session]:
    with get_session_factory()() as db:
        yield db
