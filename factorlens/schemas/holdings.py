"""Holding schemas for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from factorlens.repositories.holdings_orm import Holding


class HoldingCreateRequest(BaseModel):
    """Create holding request."""

    ticker: str = Field(..., min_length=1, max_length=10, examples=["AAPL"])
    quantity: Decimal = Field(..., gt=0, max_digits=19, decimal_places=6)

    @field_validator("ticker", mode="before")
    @classmethod
    def normalize_ticker(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class HoldingUpdateRequest(BaseModel):
    """Update holding request. Only the quantity of a holding can change."""

    quantity: Decimal = Field(..., gt=0, max_digits=19, decimal_places=6)


class HoldingResponse(BaseModel):
    """Holding response."""

    id: int
    ticker: str
    quantity: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_holding(cls, holding: Holding) -> HoldingResponse:
        return cls(
            id=holding.id,
            ticker=holding.ticker,
            quantity=holding.quantity,
            created_at=holding.created_at,
            updated_at=holding.updated_at,
        )
