"""
SQLite engine and sessions for the dev server, one engine per database URL.
"""
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from soj_dev_server.config import DATABASE_URL
from soj_dev_server.models import Base


@lru_cache(maxsize=None)
def get_engine(url: str = DATABASE_URL) -> Engine:
    options = {}
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # Every connection must see the same in-memory database
            options["poolclass"] = StaticPool
    return create_engine(url, **options)


@lru_cache(maxsize=None)
def _sessions(url: str) -> sessionmaker:
    return sessionmaker(bind=get_engine(url), autoflush=False)


def open_session(url: str = DATABASE_URL) -> Session:
    return _sessions(url)()


def init_db(url: str = DATABASE_URL) -> None:
    Base.metadata.create_all(bind=get_engine(url))


def get_db():
    """FastAPI dependency: one session per request."""
    with open_session() as db:
        yield db
