"""Holdings repository - SQLAlchemy ORM async."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from factorlens.core.logging import get_logger
from factorlens.database.connection import get_session
from factorlens.database.orm import Holding as HoldingORM


logger = get_logger("repositories.holdings_orm")


@dataclass
class Holding:
    """A user's position in one ticker."""

    id: int
    user_id: int
    ticker: str
    quantity: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_orm(cls, h: HoldingORM) -> Holding:
        return cls(
            id=h.id,
            user_id=h.user_id,
            ticker=h.ticker,
            quantity=h.quantity,
            created_at=h.created_at,
            updated_at=h.updated_at,
        )


async def list_holdings(user_id: int) -> list[Holding]:
    """List holdings owned by a user, ordered by ticker."""
    async with get_session() as session:
        result = await session.execute(
            select(HoldingORM)
            .where(HoldingORM.user_id == user_id)
            .order_by(HoldingORM.ticker)
        )
        return [Holding.from_orm(h) for h in result.scalars().all()]


async def get_holding(holding_id: int) -> Holding | None:
    """Get a holding by id, regardless of owner."""
    async with get_session() as session:
        holding = await session.get(HoldingORM, holding_id)
        return Holding.from_orm(holding) if holding else None


async def ticker_exists(user_id: int, ticker: str) -> bool:
    async with get_session() as session:
        result = await session.execute(
            select(HoldingORM.id).where(
                HoldingORM.user_id == user_id,
                HoldingORM.ticker == ticker,
            )
        )
        return result.first() is not None


async def create_holding(user_id: int, ticker: str, quantity: Decimal) -> Holding | None:
    """Insert a holding. Returns None if the user already holds the ticker."""
    async with get_session() as session:
        holding = HoldingORM(user_id=user_id, ticker=ticker, quantity=quantity)
        session.add(holding)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            return None
        await session.refresh(holding)
        return Holding.from_orm(holding)


class LockedHolding:
    """A holding row read with ``FOR UPDATE`` inside an open transaction.

    ``holding`` is None when no row matched. Mutations apply to exactly the row
    that was read, so an ownership check made against ``holding`` still holds
    when the change is written.
    """

    def __init__(self, session: AsyncSession, row: HoldingORM | None):
        self._session = session
        self._row = row

    @property
    def holding(self) -> Holding | None:
        return Holding.from_orm(self._row) if self._row is not None else None

    async def set_quantity(self, quantity: Decimal) -> Holding:
        self._row.quantity = quantity
        await self._session.commit()
        await self._session.refresh(self._row)
        return Holding.from_orm(self._row)

    async def delete(self) -> None:
        await self._session.delete(self._row)
        await self._session.commit()


@asynccontextmanager
async def lock_holding(holding_id: int) -> AsyncIterator[LockedHolding]:
    """Read a holding for update; the lock is held until the block exits."""
    async with get_session() as session:
        result = await session.execute(
            select(HoldingORM).where(HoldingORM.id == holding_id).with_for_update()
        )
        yield LockedHolding(session, result.scalar_one_or_none())
