"""Factor analysis response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field

from factorlens.services.analysis import AnalysisView


class AnalysisResponse(BaseModel):
    """Stored five-factor regression result.

    Loadings are decimals serialized as JSON strings so stored precision is
    kept. ``t_stats`` is only populated in the response of the run that
    produced the result; history and lookups by id return it as null.
    """

    id: int
    analysis_date: datetime
    alpha: Decimal
    beta_mkt: Decimal = Field(..., description="Market excess return loading")
    beta_smb: Decimal = Field(..., description="Size (small minus big) loading")
    beta_hml: Decimal = Field(..., description="Value (high minus low) loading")
    beta_rmw: Decimal = Field(..., description="Profitability (robust minus weak) loading")
    beta_cma: Decimal = Field(..., description="Investment (conservative minus aggressive) loading")
    r_squared: Decimal
    t_stats: Optional[Dict[str, Decimal]] = None

    @classmethod
    def from_view(cls, view: AnalysisView) -> AnalysisResponse:
        loadings = view.loadings
        return cls(
            id=view.id,
            analysis_date=view.analysis_date,
            alpha=loadings.alpha,
            beta_mkt=loadings.beta_mkt,
            beta_smb=loadings.beta_smb,
            beta_hml=loadings.beta_hml,
            beta_rmw=loadings.beta_rmw,
            beta_cma=loadings.beta_cma,
            r_squared=loadings.r_squared,
            t_stats=view.t_stats,
        )
