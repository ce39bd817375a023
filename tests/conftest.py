"""Pytest configuration and fixtures.

API tests run against ``create_api_app`` with in-memory repositories and the
real analysis engine client pointed at an ``httpx.MockTransport``; no database
or network is needed.
"""

from __future__ import annotations

import itertools
import json
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from factorlens.api.app import create_api_app
from factorlens.api.dependencies import Services
from factorlens.core.identity import Identity
from factorlens.core.security import TokenService
from factorlens.repositories.analysis_results_orm import AnalysisResult, FactorLoadings
from factorlens.repositories.holdings_orm import Holding
from factorlens.repositories.users_orm import User
from factorlens.services.analysis import AnalysisOrchestrator
from factorlens.services.analysis_client import AnalysisEngineClient
from factorlens.services.auth import AuthService
from factorlens.services.holdings import HoldingService


TEST_SECRET = "test-secret-key-that-is-at-least-32-bytes-long"
ENGINE_URL = "http://engine.test"
FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

ENGINE_SUCCESS: dict[str, Any] = {
    "alpha": 0.0012,
    "betaMkt": 1.05,
    "betaSmb": 0.21,
    "betaHml": -0.14,
    "betaRmw": 0.33,
    "betaCma": 0.07,
    "rSquared": 0.87,
    "tStats": {"alpha": 1.2, "betaMkt": 25.4},
}


class MutableClock:
    """Callable clock tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


# =============================================================================
# In-memory repositories (same call surface as the *_orm modules)
# =============================================================================


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}
        self._ids = itertools.count(1)

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.rows.values() if u.email == email), None)

    async def get_user_by_id(self, user_id: int) -> User | None:
        return self.rows.get(user_id)

    async def email_exists(self, email: str) -> bool:
        return await self.get_user_by_email(email) is not None

    async def create_user(self, email: str, password_hash: str, role: str = "USER") -> User | None:
        if await self.email_exists(email):
            return None
        user = User(id=next(self._ids), email=email, password_hash=password_hash, role=role)
        self.rows[user.id] = user
        return user


class InMemoryLockedHolding:
    def __init__(self, store: InMemoryHoldings, holding: Holding | None):
        self._store = store
        self._holding = holding

    @property
    def holding(self) -> Holding | None:
        return self._holding

    async def set_quantity(self, quantity: Decimal) -> Holding:
        updated = replace(self._holding, quantity=quantity, updated_at=FIXED_NOW)
        self._store.rows[updated.id] = updated
        return updated

    async def delete(self) -> None:
        del self._store.rows[self._holding.id]


class InMemoryHoldings:
    def __init__(self):
        self.rows: dict[int, Holding] = {}
        self._ids = itertools.count(1)

    async def list_holdings(self, user_id: int) -> list[Holding]:
        return sorted(
            (h for h in self.rows.values() if h.user_id == user_id),
            key=lambda h: h.ticker,
        )

    async def get_holding(self, holding_id: int) -> Holding | None:
        return self.rows.get(holding_id)

    async def ticker_exists(self, user_id: int, ticker: str) -> bool:
        return any(h.user_id == user_id and h.ticker == ticker for h in self.rows.values())

    async def create_holding(self, user_id: int, ticker: str, quantity: Decimal) -> Holding | None:
        if any(h.user_id == user_id and h.ticker == ticker for h in self.rows.values()):
            return None
        holding = Holding(
            id=next(self._ids),
            user_id=user_id,
            ticker=ticker,
            quantity=quantity,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        self.rows[holding.id] = holding
        return holding

    @asynccontextmanager
    async def lock_holding(self, holding_id: int):
        yield InMemoryLockedHolding(self, self.rows.get(holding_id))


class InMemoryResults:
    def __init__(self):
        self.rows: dict[int, AnalysisResult] = {}
        self._ids = itertools.count(1)

    async def create_result(
        self, user_id: int, analysis_date: datetime, loadings: FactorLoadings
    ) -> AnalysisResult:
        result = AnalysisResult(
            id=next(self._ids), user_id=user_id, analysis_date=analysis_date, loadings=loadings
        )
        self.rows[result.id] = result
        return result

    async def list_results(self, user_id: int) -> list[AnalysisResult]:
        return sorted(
            (r for r in self.rows.values() if r.user_id == user_id),
            key=lambda r: (r.analysis_date, r.id),
            reverse=True,
        )

    async def get_result(self, result_id: int) -> AnalysisResult | None:
        return self.rows.get(result_id)


class EngineStub:
    """MockTransport handler recording requests sent to the analysis engine."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=ENGINE_SUCCESS)
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def loadings() -> FactorLoadings:
    return FactorLoadings(
        alpha=Decimal("0.001"),
        beta_mkt=Decimal("1.0"),
        beta_smb=Decimal("0.2"),
        beta_hml=Decimal("-0.1"),
        beta_rmw=Decimal("0.3"),
        beta_cma=Decimal("0.05"),
        r_squared=Decimal("0.9"),
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def holdings_repo() -> InMemoryHoldings:
    return InMemoryHoldings()


@pytest.fixture
def results_repo() -> InMemoryResults:
    return InMemoryResults()


@pytest.fixture
def engine() -> EngineStub:
    return EngineStub()


@pytest.fixture
def tokens(clock: MutableClock) -> TokenService:
    return TokenService(TEST_SECRET, ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def engine_client(engine: EngineStub) -> AnalysisEngineClient:
    return AnalysisEngineClient(ENGINE_URL, timeout=5.0, transport=httpx.MockTransport(engine))


@pytest.fixture
def services(
    tokens: TokenService,
    users_repo: InMemoryUsers,
    holdings_repo: InMemoryHoldings,
    results_repo: InMemoryResults,
    engine_client: AnalysisEngineClient,
    clock: MutableClock,
) -> Services:
    async def resolve_identity(email: str) -> Identity | None:
        user = await users_repo.get_user_by_email(email)
        if user is None:
            return None
        return Identity(user_id=user.id, email=user.email, role=user.role)

    return Services(
        tokens=tokens,
        auth=AuthService(tokens, users_repo=users_repo),
        holdings=HoldingService(repo=holdings_repo),
        analysis=AnalysisOrchestrator(
            engine_client,
            holdings_repo=holdings_repo,
            results_repo=results_repo,
            clock=clock,
        ),
        resolve_identity=resolve_identity,
    )


@pytest.fixture
def client(services: Services, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    async def _noop() -> None:
        return None

    monkeypatch.setattr("factorlens.database.connection.init_sqlalchemy_engine", _noop)
    monkeypatch.setattr("factorlens.database.connection.close_sqlalchemy_engine", _noop)

    app = create_api_app(services)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., dict[str, str]]:
    """Register an account and return its authorization headers."""

    def _register(email: str, password: str = "s3cret-pass") -> dict[str, str]:
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
def alice_headers(register_user) -> dict[str, str]:
    return register_user("alice@example.com")


@pytest.fixture
def bob_headers(register_user) -> dict[str, str]:
    return register_user("bob@example.com")
