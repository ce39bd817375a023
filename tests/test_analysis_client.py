"""Tests for the factor regression service client."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from factorlens.core.results import ErrorKind, Ok
from factorlens.schemas.engine import EngineHolding, FactorRegressionRequest
from factorlens.services.analysis_client import (
    FACTOR_REGRESSION_PATH,
    UNAVAILABLE_PREFIX,
    AnalysisEngineClient,
    DownstreamError,
    DownstreamErrorKind,
    classify_status,
)


def _request() -> FactorRegressionRequest:
    return FactorRegressionRequest(
        holdings=[EngineHolding(ticker="AAPL", quantity=10)],
        start_date="2022-01-01",
        end_date="2024-12-31",
    )


class TestClassifyStatus:
    @pytest.mark.parametrize(
        "code,kind",
        [
            (400, DownstreamErrorKind.BAD_REQUEST),
            (404, DownstreamErrorKind.NOT_FOUND),
            (401, DownstreamErrorKind.UNAVAILABLE),
            (422, DownstreamErrorKind.UNAVAILABLE),
            (500, DownstreamErrorKind.UNAVAILABLE),
            (503, DownstreamErrorKind.UNAVAILABLE),
        ],
    )
    def test_kinds(self, code, kind):
        assert classify_status(code) is kind


class TestDownstreamErrorToFailure:
    def test_bad_request_keeps_status_and_message(self):
        failure = DownstreamError(DownstreamErrorKind.BAD_REQUEST, "Bad dates").to_failure()
        assert failure.kind is ErrorKind.DOWNSTREAM_REJECTED
        assert failure.status_code == 400
        assert failure.message == "Bad dates"

    def test_not_found_keeps_status(self):
        failure = DownstreamError(DownstreamErrorKind.NOT_FOUND, "Invalid ticker: XYZ").to_failure()
        assert failure.status_code == 404

    def test_unavailable(self):
        failure = DownstreamError(DownstreamErrorKind.UNAVAILABLE, "down").to_failure()
        assert failure.kind is ErrorKind.DOWNSTREAM_UNAVAILABLE


class TestRunFactorRegression:
    @pytest.mark.asyncio
    async def test_success_parses_loadings(self, engine, engine_client):
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, Ok)
        response = outcome.value
        assert response.alpha == Decimal("0.0012")
        assert response.beta_mkt == Decimal("1.05")
        assert response.beta_hml == Decimal("-0.14")
        assert response.r_squared == Decimal("0.87")
        assert response.t_stats == {"alpha": Decimal("1.2"), "betaMkt": Decimal("25.4")}

    @pytest.mark.asyncio
    async def test_posts_camel_case_body(self, engine, engine_client):
        await engine_client.run_factor_regression(_request())

        sent = engine.requests[-1]
        assert sent.method == "POST"
        assert sent.url.path == FACTOR_REGRESSION_PATH
        assert engine.last_body == {
            "holdings": [{"ticker": "AAPL", "quantity": 10}],
            "startDate": "2022-01-01",
            "endDate": "2024-12-31",
        }

    @pytest.mark.asyncio
    async def test_snake_case_response_accepted(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(
            200,
            json={
                "alpha": 0.1,
                "beta_mkt": 1.0,
                "beta_smb": 0.0,
                "beta_hml": 0.0,
                "beta_rmw": 0.0,
                "beta_cma": 0.0,
                "r_squared": 0.5,
            },
        )
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, Ok)
        assert outcome.value.beta_mkt == Decimal("1.0")
        assert outcome.value.t_stats is None

    @pytest.mark.asyncio
    async def test_null_t_stats_accepted(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(
            200,
            json={
                "alpha": 0.0012,
                "betaMkt": 1.05,
                "betaSmb": 0.21,
                "betaHml": -0.14,
                "betaRmw": 0.33,
                "betaCma": 0.07,
                "rSquared": 0.87,
                "tStats": None,
            },
        )
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, Ok)
        assert outcome.value.r_squared == Decimal("0.87")
        assert outcome.value.t_stats is None

    @pytest.mark.asyncio
    async def test_not_found_carries_engine_message(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(
            404, json={"error": "Invalid ticker: XYZ", "code": "NOT_FOUND"}
        )
        outcome = await engine_client.run_factor_regression(_request())

        assert outcome == DownstreamError(DownstreamErrorKind.NOT_FOUND, "Invalid ticker: XYZ")

    @pytest.mark.asyncio
    async def test_bad_request_without_body(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(400)
        outcome = await engine_client.run_factor_regression(_request())

        assert outcome == DownstreamError(
            DownstreamErrorKind.BAD_REQUEST, "Factor analysis service returned status 400"
        )

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(500, json={"error": "boom"})
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, DownstreamError)
        assert outcome.kind is DownstreamErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_connection_failure_is_unavailable(self, engine, engine_client):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        engine.respond = refuse
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, DownstreamError)
        assert outcome.kind is DownstreamErrorKind.UNAVAILABLE
        assert outcome.message == f"{UNAVAILABLE_PREFIX}: Connection refused"

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, engine, engine_client):
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("", request=request)

        engine.respond = slow
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, DownstreamError)
        assert outcome.message == f"{UNAVAILABLE_PREFIX}: ReadTimeout"

    @pytest.mark.asyncio
    async def test_unreadable_success_body_is_unavailable(self, engine, engine_client):
        engine.respond = lambda request: httpx.Response(200, content=b"<html>oops</html>")
        outcome = await engine_client.run_factor_regression(_request())

        assert isinstance(outcome, DownstreamError)
        assert outcome.kind is DownstreamErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_trailing_slash_in_base_url(self, engine):
        client = AnalysisEngineClient(
            "http://engine.test/", timeout=1.0, transport=httpx.MockTransport(engine)
        )
        await client.run_factor_regression(_request())

        assert str(engine.requests[-1].url) == f"http://engine.test{FACTOR_REGRESSION_PATH}"
