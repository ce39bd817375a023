"""User repository using SQLAlchemy ORM.

Usage:
    from factorlens.repositories.users_orm import get_user_by_email, create_user
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from factorlens.core.logging import get_logger
from factorlens.database.connection import get_session
from factorlens.database.orm import User as UserORM


logger = get_logger("repositories.users_orm")


@dataclass
class User:
    """Registered account."""

    id: int
    email: str
    password_hash: str
    role: str = "USER"
    created_at: datetime | None = None

    @classmethod
    def from_orm(cls, user: UserORM) -> User:
        """Create from ORM model."""
        return cls(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            role=user.role or "USER",
            created_at=user.created_at,
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(email: str) -> User | None:
    """Get a user by email address."""
    async with get_session() as session:
        result = await session.execute(
            select(UserORM).where(UserORM.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        return User.from_orm(user) if user else None


async def get_user_by_id(user_id: int) -> User | None:
    """Get a user by ID."""
    async with get_session() as session:
        user = await session.get(UserORM, user_id)
        return User.from_orm(user) if user else None


async def email_exists(email: str) -> bool:
    async with get_session() as session:
        result = await session.execute(
            select(UserORM.id).where(UserORM.email == normalize_email(email))
        )
        return result.first() is not None


async def create_user(email: str, password_hash: str, role: str = "USER") -> User | None:
    """Create a user. Returns None if the email is already registered."""
    async with get_session() as session:
        user = UserORM(
            email=normalize_email(email),
            password_hash=password_hash,
            role=role,
        )
        session.add(user)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            logger.info("Registration raced on an existing email")
            return None
        await session.refresh(user)
        return User.from_orm(user)
