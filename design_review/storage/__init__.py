"""Persistence for configurations and stage progress."""

from .database import Base, create_engine_and_session, init_db
from .config_store import SqlConfigurationStore
from .progress_log import SqlProgressLogStore

__all__ = [
    "Base",
    "create_engine_and_session",
    "init_db",
    "SqlConfigurationStore",
    "SqlProgressLogStore",
]
