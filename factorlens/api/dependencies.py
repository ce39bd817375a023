"""API dependencies: service wiring and the caller's identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from factorlens.core.exceptions import AuthenticationError
from factorlens.core.identity import Identity
from factorlens.core.security import TokenService, build_token_service
from factorlens.repositories import users_orm
from factorlens.services.analysis import AnalysisOrchestrator
from factorlens.services.analysis_client import build_analysis_client
from factorlens.services.auth import AuthService
from factorlens.services.holdings import HoldingService

from .middleware import IdentityResolver, get_request_context


__all__ = [
    "Services",
    "build_services",
    "get_analysis_orchestrator",
    "get_auth_service",
    "get_holding_service",
    "require_identity",
    "resolve_identity_by_email",
]


async def resolve_identity_by_email(email: str) -> Optional[Identity]:
    """Load the user a token subject refers to."""
    user = await users_orm.get_user_by_email(email)
    if user is None:
        return None
    return Identity(user_id=user.id, email=user.email, role=user.role)


@dataclass(frozen=True)
class Services:
    """Per-application service instances. Stateless apart from configuration."""

    tokens: TokenService
    auth: AuthService
    holdings: HoldingService
    analysis: AnalysisOrchestrator
    resolve_identity: IdentityResolver


def build_services() -> Services:
    tokens = build_token_service()
    return Services(
        tokens=tokens,
        auth=AuthService(tokens),
        holdings=HoldingService(),
        analysis=AnalysisOrchestrator(build_analysis_client()),
        resolve_identity=resolve_identity_by_email,
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def get_auth_service(request: Request) -> AuthService:
    return _services(request).auth


def get_holding_service(request: Request) -> HoldingService:
    return _services(request).holdings


def get_analysis_orchestrator(request: Request) -> AnalysisOrchestrator:
    return _services(request).analysis


async def require_identity(request: Request) -> Identity:
    """The authenticated caller.

    Raises AuthenticationError (401, no detail) when the request pipeline did
    not attach an identity.
    """
    identity = get_request_context(request).identity
    if identity is None:
        raise AuthenticationError()
    return identity
