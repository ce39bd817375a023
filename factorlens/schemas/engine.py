"""Wire schemas for the external factor regression service."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineHolding(BaseModel):
    """One position as sent to the engine. Quantities are whole shares."""

    ticker: str
    quantity: int


class FactorRegressionRequest(BaseModel):
    """Body of ``POST /api/analysis/factor-regression``."""

    model_config = ConfigDict(populate_by_name=True)

    holdings: List[EngineHolding]
    start_date: str = Field(..., alias="startDate", description="YYYY-MM-DD")
    end_date: str = Field(..., alias="endDate", description="YYYY-MM-DD")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class FactorRegressionResponse(BaseModel):
    """Successful regression output, taken as-is from the engine."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    alpha: Decimal
    beta_mkt: Decimal = Field(..., alias="betaMkt")
    beta_smb: Decimal = Field(..., alias="betaSmb")
    beta_hml: Decimal = Field(..., alias="betaHml")
    beta_rmw: Decimal = Field(..., alias="betaRmw")
    beta_cma: Decimal = Field(..., alias="betaCma")
    r_squared: Decimal = Field(..., alias="rSquared")
    t_stats: Optional[Dict[str, Decimal]] = Field(default=None, alias="tStats")


class EngineErrorPayload(BaseModel):
    """Error body returned alongside a non-2xx status."""

    model_config = ConfigDict(extra="ignore")

    error: str | None = None
    code: str | None = None
