"""Holdings management scoped to the calling user."""

from __future__ import annotations

from decimal import Decimal
from types import ModuleType

from factorlens.core.access import AccessControlService
from factorlens.core.identity import Identity
from factorlens.core.logging import get_logger
from factorlens.core.results import Failure, Ok, Result, validation_failure
from factorlens.repositories import holdings_orm
from factorlens.repositories.holdings_orm import Holding


logger = get_logger("services.holdings")

HOLDING_LABEL = "Holding"


def normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def duplicate_ticker(ticker: str) -> Failure:
    return validation_failure(f"You already have a holding for {ticker}")


class HoldingService:
    """CRUD over holdings; every operation is checked against ownership."""

    def __init__(
        self,
        *,
        repo: ModuleType = holdings_orm,
        access: AccessControlService | None = None,
    ):
        self._repo = repo
        self._access = access or AccessControlService()

    async def list_holdings(self, identity: Identity) -> list[Holding]:
        return await self._repo.list_holdings(identity.user_id)

    async def get_holding(self, identity: Identity, holding_id: int) -> Result[Holding]:
        holding = await self._repo.get_holding(holding_id)
        return self._access.check_owned(holding, identity.user_id, HOLDING_LABEL)

    async def create_holding(
        self, identity: Identity, ticker: str, quantity: Decimal
    ) -> Result[Holding]:
        ticker = normalize_ticker(ticker)
        if await self._repo.ticker_exists(identity.user_id, ticker):
            return duplicate_ticker(ticker)

        created = await self._repo.create_holding(identity.user_id, ticker, quantity)
        if created is None:
            # Lost a race against a concurrent insert of the same ticker
            return duplicate_ticker(ticker)

        logger.info(f"User {identity.user_id} added holding {created.id} ({ticker})")
        return Ok(created)

    async def update_holding(
        self, identity: Identity, holding_id: int, quantity: Decimal
    ) -> Result[Holding]:
        async with self._repo.lock_holding(holding_id) as locked:
            owned = self._access.check_owned(locked.holding, identity.user_id, HOLDING_LABEL)
            if isinstance(owned, Failure):
                return owned
            return Ok(await locked.set_quantity(quantity))

    async def delete_holding(self, identity: Identity, holding_id: int) -> Result[None]:
        async with self._repo.lock_holding(holding_id) as locked:
            owned = self._access.check_owned(locked.holding, identity.user_id, HOLDING_LABEL)
            if isinstance(owned, Failure):
                return owned
            await locked.delete()

        logger.info(f"User {identity.user_id} deleted holding {holding_id}")
        return Ok(None)
