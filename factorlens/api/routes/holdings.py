"""Holding routes. Every operation is scoped to the authenticated caller."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from factorlens.api.dependencies import get_holding_service, require_identity
from factorlens.core.exceptions import unwrap
from factorlens.core.identity import Identity
from factorlens.schemas.holdings import (
    HoldingCreateRequest,
    HoldingResponse,
    HoldingUpdateRequest,
)
from factorlens.services.holdings import HoldingService


router = APIRouter(prefix="/holdings")


@router.get("", response_model=List[HoldingResponse])
async def list_holdings(
    identity: Identity = Depends(require_identity),
    holdings: HoldingService = Depends(get_holding_service),
) -> List[HoldingResponse]:
    rows = await holdings.list_holdings(identity)
    return [HoldingResponse.from_holding(h) for h in rows]


@router.post("", response_model=HoldingResponse, status_code=status.HTTP_201_CREATED)
async def create_holding(
    payload: HoldingCreateRequest,
    identity: Identity = Depends(require_identity),
    holdings: HoldingService = Depends(get_holding_service),
) -> HoldingResponse:
    created = unwrap(
        await holdings.create_holding(identity, payload.ticker, payload.quantity)
    )
    return HoldingResponse.from_holding(created)


@router.get("/{holding_id}", response_model=HoldingResponse)
async def get_holding(
    holding_id: int,
    identity: Identity = Depends(require_identity),
    holdings: HoldingService = Depends(get_holding_service),
) -> HoldingResponse:
    return HoldingResponse.from_holding(
        unwrap(await holdings.get_holding(identity, holding_id))
    )


@router.put("/{holding_id}", response_model=HoldingResponse)
async def update_holding(
    holding_id: int,
    payload: HoldingUpdateRequest,
    identity: Identity = Depends(require_identity),
    holdings: HoldingService = Depends(get_holding_service),
) -> HoldingResponse:
    updated = unwrap(
        await holdings.update_holding(identity, holding_id, payload.quantity)
    )
    return HoldingResponse.from_holding(updated)


@router.delete("/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holding(
    holding_id: int,
    identity: Identity = Depends(require_identity),
    holdings: HoldingService = Depends(get_holding_service),
) -> Response:
    unwrap(await holdings.delete_holding(identity, holding_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
