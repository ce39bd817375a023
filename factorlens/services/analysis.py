"""Factor analysis orchestration.

One run goes through: validate -> build request -> dispatch -> persist ->
respond. A result row is written only after the engine answered
successfully. The t-statistics map is part of the run's response but is not
stored, so later reads of the same result return it as null.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from types import ModuleType
from typing import Dict, Optional, Sequence

from factorlens.core.access import AccessControlService
from factorlens.core.identity import Identity
from factorlens.core.logging import get_logger
from factorlens.core.results import Failure, Ok, Result, validation_failure
from factorlens.core.security import Clock, utc_now
from factorlens.repositories import analysis_results_orm, holdings_orm
from factorlens.repositories.analysis_results_orm import AnalysisResult, FactorLoadings
from factorlens.repositories.holdings_orm import Holding
from factorlens.schemas.engine import (
    EngineHolding,
    FactorRegressionRequest,
    FactorRegressionResponse,
)
from factorlens.services.analysis_client import AnalysisEngineClient, DownstreamError


logger = get_logger("services.analysis")

DEFAULT_LOOKBACK_YEARS = 3
NO_HOLDINGS_MESSAGE = "No holdings found. Add holdings before running analysis."
RESULT_LABEL = "Analysis result"


@dataclass(frozen=True)
class AnalysisView:
    """A stored result as returned to the caller."""

    id: int
    analysis_date: datetime
    loadings: FactorLoadings
    t_stats: Optional[Dict[str, Decimal]] = None

    @classmethod
    def of(
        cls, result: AnalysisResult, t_stats: Optional[Dict[str, Decimal]] = None
    ) -> AnalysisView:
        return cls(
            id=result.id,
            analysis_date=result.analysis_date,
            loadings=result.loadings,
            t_stats=t_stats,
        )


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def resolve_dates(
    start_date: date | None, end_date: date | None, today: date
) -> tuple[date, date]:
    """Apply the default window: end defaults to today, start to end minus 3 years."""
    end = end_date or today
    start = start_date or years_before(end, DEFAULT_LOOKBACK_YEARS)
    return start, end


def build_engine_request(
    holdings: Sequence[Holding], start: date, end: date
) -> FactorRegressionRequest:
    """Map holdings to the engine's wire format.

    Quantities are sent as whole shares: ``int()`` truncates toward zero, so
    10.9 shares go out as 10.
    """
    return FactorRegressionRequest(
        holdings=[EngineHolding(ticker=h.ticker, quantity=int(h.quantity)) for h in holdings],
        start_date=start.isoformat(),
        end_date=end.isoformat(),
    )


def loadings_from(response: FactorRegressionResponse) -> FactorLoadings:
    return FactorLoadings(
        alpha=response.alpha,
        beta_mkt=response.beta_mkt,
        beta_smb=response.beta_smb,
        beta_hml=response.beta_hml,
        beta_rmw=response.beta_rmw,
        beta_cma=response.beta_cma,
        r_squared=response.r_squared,
    )


class AnalysisOrchestrator:
    """Runs factor analyses for a caller and reads their stored results."""

    def __init__(
        self,
        client: AnalysisEngineClient,
        *,
        holdings_repo: ModuleType = holdings_orm,
        results_repo: ModuleType = analysis_results_orm,
        access: AccessControlService | None = None,
        clock: Clock = utc_now,
    ):
        self._client = client
        self._holdings = holdings_repo
        self._results = results_repo
        self._access = access or AccessControlService()
        self._clock = clock

    async def run_analysis(
        self,
        identity: Identity,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Result[AnalysisView]:
        holdings = await self._holdings.list_holdings(identity.user_id)
        if not holdings:
            return validation_failure(NO_HOLDINGS_MESSAGE)

        start, end = resolve_dates(start_date, end_date, self._clock().date())
        if start > end:
            return validation_failure("start_date must not be after end_date")

        request = build_engine_request(holdings, start, end)
        logger.info(
            f"Dispatching factor regression for user {identity.user_id}: "
            f"{len(request.holdings)} holdings, {request.start_date}..{request.end_date}"
        )

        outcome = await self._client.run_factor_regression(request)
        if isinstance(outcome, DownstreamError):
            logger.warning(
                f"Factor regression failed for user {identity.user_id}: "
                f"{outcome.kind.value}: {outcome.message}"
            )
            return outcome.to_failure()

        response = outcome.value
        stored = await self._results.create_result(
            identity.user_id, self._clock(), loadings_from(response)
        )
        return Ok(AnalysisView.of(stored, response.t_stats))

    async def get_history(self, identity: Identity) -> list[AnalysisView]:
        results = await self._results.list_results(identity.user_id)
        return [AnalysisView.of(r) for r in results]

    async def get_by_id(self, identity: Identity, result_id: int) -> Result[AnalysisView]:
        result = await self._results.get_result(result_id)
        owned = self._access.check_owned(result, identity.user_id, RESULT_LABEL)
        if isinstance(owned, Failure):
            return owned
        return Ok(AnalysisView.of(owned.value))
