"""Database module: SQLAlchemy async engine, sessions and ORM models."""

from .connection import (
    close_sqlalchemy_engine,
    db_healthcheck,
    get_async_database_url,
    get_engine,
    get_session,
    init_sqlalchemy_engine,
)
from .orm import Base, FactorAnalysisResult, Holding, User


__all__ = [
    "Base",
    "FactorAnalysisResult",
    "Holding",
    "User",
    "close_sqlalchemy_engine",
    "db_healthcheck",
    "get_async_database_url",
    "get_engine",
    "get_session",
    "init_sqlalchemy_engine",
]
