"""
Database connection via SQLAlchemy.

The URL comes from ``Settings.database_url``; SQLite is the default and
needs no server.
"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_engine_and_session(database_url: str, **engine_kwargs: Any) -> tuple[Engine, sessionmaker]:
    """Create an engine and a session factory bound to it."""
    if database_url.startswith("sqlite"):
        connect_args = engine_kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine_kwargs["connect_args"] = connect_args

    engine = create_engine(database_url, **engine_kwargs)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine, session_factory


def init_db(engine: Engine) -> None:
    """Create all tables if they don't exist."""
    from design_review.storage import models  # noqa: F401 (registers records with Base)
    Base.metadata.create_all(bind=engine)
