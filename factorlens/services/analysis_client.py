"""Client for the external factor regression service.

Every failure is classified into one of three kinds:

* transport failure (refused, timeout, DNS, ...) -> UNAVAILABLE
* engine answered 400 -> BAD_REQUEST, 404 -> NOT_FOUND
* engine answered any other non-2xx status -> UNAVAILABLE

Calls are made once. A regression request is not retried automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from factorlens.core.config import settings
from factorlens.core.logging import get_logger
from factorlens.core.results import ErrorKind, Failure, Ok
from factorlens.schemas.engine import (
    EngineErrorPayload,
    FactorRegressionRequest,
    FactorRegressionResponse,
)


logger = get_logger("services.analysis_client")

FACTOR_REGRESSION_PATH = "/api/analysis/factor-regression"
UNAVAILABLE_PREFIX = "Factor analysis service is unavailable"


class DownstreamErrorKind(str, Enum):
    UNAVAILABLE = "unavailable"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"


_STATUS_KINDS = {
    400: DownstreamErrorKind.BAD_REQUEST,
    404: DownstreamErrorKind.NOT_FOUND,
}


@dataclass(frozen=True)
class DownstreamError:
    """A classified failure of the regression service."""

    kind: DownstreamErrorKind
    message: str

    def to_failure(self) -> Failure:
        if self.kind is DownstreamErrorKind.BAD_REQUEST:
            return Failure(ErrorKind.DOWNSTREAM_REJECTED, self.message, status_code=400)
        if self.kind is DownstreamErrorKind.NOT_FOUND:
            return Failure(ErrorKind.DOWNSTREAM_REJECTED, self.message, status_code=404)
        return Failure(ErrorKind.DOWNSTREAM_UNAVAILABLE, self.message)


RegressionOutcome = Union[Ok[FactorRegressionResponse], DownstreamError]


def classify_status(status_code: int) -> DownstreamErrorKind:
    return _STATUS_KINDS.get(status_code, DownstreamErrorKind.UNAVAILABLE)


def _error_message(response: httpx.Response) -> str:
    """Engine's own error text when it sent one, else a synthesized message."""
    try:
        payload = EngineErrorPayload.model_validate_json(response.content)
    except PydanticValidationError:
        payload = None
    if payload is not None and payload.error:
        return payload.error
    return f"Factor analysis service returned status {response.status_code}"


class AnalysisEngineClient:
    """Transport adapter for ``POST /api/analysis/factor-regression``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def run_factor_regression(
        self, request: FactorRegressionRequest
    ) -> RegressionOutcome:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(FACTOR_REGRESSION_PATH, json=request.to_wire())
        except httpx.RequestError as exc:
            detail = str(exc) or type(exc).__name__
            logger.warning(f"Factor regression request failed: {detail}")
            return DownstreamError(
                DownstreamErrorKind.UNAVAILABLE, f"{UNAVAILABLE_PREFIX}: {detail}"
            )

        if not response.is_success:
            kind = classify_status(response.status_code)
            message = _error_message(response)
            logger.warning(
                f"Factor regression service returned {response.status_code}: {message}"
            )
            return DownstreamError(kind, message)

        try:
            return Ok(FactorRegressionResponse.model_validate_json(response.content))
        except PydanticValidationError as exc:
            logger.error(f"Unreadable factor regression response: {exc.error_count()} errors")
            return DownstreamError(
                DownstreamErrorKind.UNAVAILABLE,
                f"{UNAVAILABLE_PREFIX}: returned an unreadable response",
            )


def build_analysis_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> AnalysisEngineClient:
    """Client configured from application settings."""
    return AnalysisEngineClient(
        settings.analysis_engine_url,
        timeout=settings.analysis_engine_timeout_seconds,
        transport=transport,
    )
