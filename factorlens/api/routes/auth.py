"""Registration and login routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from factorlens.api.dependencies import get_auth_service
from factorlens.core.exceptions import unwrap
from factorlens.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from factorlens.services.auth import AuthService, IssuedToken


router = APIRouter()


def _to_response(issued: IssuedToken) -> AuthResponse:
    return AuthResponse(token=issued.token, email=issued.email)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and receive a bearer token.",
)
async def register(
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return _to_response(unwrap(await auth.register(payload.email, payload.password)))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange credentials for a bearer token.",
)
async def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return _to_response(unwrap(await auth.login(payload.email, payload.password)))
