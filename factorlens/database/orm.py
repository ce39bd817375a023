"""SQLAlchemy ORM models for Factorlens.

SQLAlchemy 2.0 declarative style, async via the asyncpg driver.

Usage:
    from factorlens.database.orm import User, Holding, FactorAnalysisResult
    from factorlens.database.connection import get_session
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


# Naming convention for constraints and indexes (deterministic names for Alembic)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Factor loadings keep ten decimal places, the fit statistic six
LOADING_PRECISION = (19, 10)
R_SQUARED_PRECISION = (10, 6)
QUANTITY_PRECISION = (19, 6)


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# =============================================================================
# USERS
# =============================================================================


class User(Base):
    """Registered account."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="USER")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    holdings: Mapped[list[Holding]] = relationship(back_populates="user")
    analysis_results: Mapped[list[FactorAnalysisResult]] = relationship(back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('USER', 'ADMIN')", name="role"),
    )


# =============================================================================
# HOLDINGS
# =============================================================================


class Holding(Base):
    """A position in one ticker, owned by one user."""
    __tablename__ = "holdings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ticker: Mapped[str] = mapped_column(String(10), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(*QUANTITY_PRECISION), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user: Mapped[User] = relationship(back_populates="holdings")

    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uq_holdings_user_ticker"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
        Index("idx_holdings_user", "user_id"),
    )


# =============================================================================
# FACTOR ANALYSIS
# =============================================================================


class FactorAnalysisResult(Base):
    """Outcome of one five-factor regression run. Never updated."""
    __tablename__ = "factor_analysis_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    analysis_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    alpha: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    beta_mkt: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    beta_smb: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    beta_hml: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    beta_rmw: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    beta_cma: Mapped[Decimal] = mapped_column(Numeric(*LOADING_PRECISION), nullable=False)
    r_squared: Mapped[Decimal] = mapped_column(Numeric(*R_SQUARED_PRECISION), nullable=False)

    user: Mapped[User] = relationship(back_populates="analysis_results")

    __table_args__ = (
        Index("idx_results_user", "user_id"),
        Index("idx_results_user_date", "user_id", "analysis_date"),
    )
