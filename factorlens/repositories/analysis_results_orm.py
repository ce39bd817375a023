"""Factor analysis results repository - SQLAlchemy ORM async.

Results are append-only: there is no update or delete here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import desc, select

from factorlens.database.connection import get_session
from factorlens.database.orm import FactorAnalysisResult as ResultORM


@dataclass(frozen=True)
class FactorLoadings:
    """Regression coefficients and fit statistic as stored."""

    alpha: Decimal
    beta_mkt: Decimal
    beta_smb: Decimal
    beta_hml: Decimal
    beta_rmw: Decimal
    beta_cma: Decimal
    r_squared: Decimal


@dataclass
class AnalysisResult:
    id: int
    user_id: int
    analysis_date: datetime
    loadings: FactorLoadings

    @classmethod
    def from_orm(cls, r: ResultORM) -> AnalysisResult:
        return cls(
            id=r.id,
            user_id=r.user_id,
            analysis_date=r.analysis_date,
            loadings=FactorLoadings(
                alpha=r.alpha,
                beta_mkt=r.beta_mkt,
                beta_smb=r.beta_smb,
                beta_hml=r.beta_hml,
                beta_rmw=r.beta_rmw,
                beta_cma=r.beta_cma,
                r_squared=r.r_squared,
            ),
        )


async def create_result(
    user_id: int,
    analysis_date: datetime,
    loadings: FactorLoadings,
) -> AnalysisResult:
    """Persist one regression outcome."""
    async with get_session() as session:
        row = ResultORM(
            user_id=user_id,
            analysis_date=analysis_date,
            alpha=loadings.alpha,
            beta_mkt=loadings.beta_mkt,
            beta_smb=loadings.beta_smb,
            beta_hml=loadings.beta_hml,
            beta_rmw=loadings.beta_rmw,
            beta_cma=loadings.beta_cma,
            r_squared=loadings.r_squared,
        )
        session.add(row)
        await session.commit()
        await session.refresh(row)
        return AnalysisResult.from_orm(row)


async def list_results(user_id: int) -> list[AnalysisResult]:
    """A user's results, most recent first."""
    async with get_session() as session:
        result = await session.execute(
            select(ResultORM)
            .where(ResultORM.user_id == user_id)
            .order_by(desc(ResultORM.analysis_date), desc(ResultORM.id))
        )
        return [AnalysisResult.from_orm(r) for r in result.scalars().all()]


async def get_result(result_id: int) -> AnalysisResult | None:
    """Get a result by id, regardless of owner."""
    async with get_session() as session:
        row = await session.get(ResultORM, result_id)
        return AnalysisResult.from_orm(row) if row else None
