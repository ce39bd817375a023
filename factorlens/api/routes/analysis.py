"""Factor analysis routes."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from factorlens.api.dependencies import get_analysis_orchestrator, require_identity
from factorlens.core.exceptions import unwrap
from factorlens.core.identity import Identity
from factorlens.schemas.analysis import AnalysisResponse
from factorlens.services.analysis import AnalysisOrchestrator


router = APIRouter(prefix="/analysis")


@router.post(
    "/run",
    response_model=AnalysisResponse,
    summary="Run factor analysis",
    description=(
        "Regress the caller's holdings against the five Fama-French factors "
        "and store the loadings. Defaults to the three years ending today. "
        "Dates are accepted as startDate/endDate or start_date/end_date."
    ),
)
async def run_analysis(
    start_date: Optional[date] = Query(default=None, alias="startDate", description="First day of the window (ISO date)"),
    end_date: Optional[date] = Query(default=None, alias="endDate", description="Last day of the window (ISO date)"),
    start_date_snake: Optional[date] = Query(default=None, alias="start_date", include_in_schema=False),
    end_date_snake: Optional[date] = Query(default=None, alias="end_date", include_in_schema=False),
    identity: Identity = Depends(require_identity),
    orchestrator: AnalysisOrchestrator = Depends(get_analysis_orchestrator),
) -> AnalysisResponse:
    view = unwrap(
        await orchestrator.run_analysis(
            identity, start_date or start_date_snake, end_date or end_date_snake
        )
    )
    return AnalysisResponse.from_view(view)


@router.get(
    "/history",
    response_model=List[AnalysisResponse],
    summary="Analysis history",
    description="Stored results for the caller, newest first.",
)
async def get_history(
    identity: Identity = Depends(require_identity),
    orchestrator: AnalysisOrchestrator = Depends(get_analysis_orchestrator),
) -> List[AnalysisResponse]:
    views = await orchestrator.get_history(identity)
    return [AnalysisResponse.from_view(v) for v in views]


@router.get("/{result_id}", response_model=AnalysisResponse)
async def get_result(
    result_id: int,
    identity: Identity = Depends(require_identity),
    orchestrator: AnalysisOrchestrator = Depends(get_analysis_orchestrator),
) -> AnalysisResponse:
    return AnalysisResponse.from_view(
        unwrap(await orchestrator.get_by_id(identity, result_id))
    )
