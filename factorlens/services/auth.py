"""Registration and login."""

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from factorlens.core.logging import get_logger
from factorlens.core.results import Ok, Result, unauthenticated, validation_failure
from factorlens.core.security import TokenService, hash_password, verify_password
from factorlens.repositories import users_orm
from factorlens.repositories.users_orm import normalize_email


logger = get_logger("services.auth")

DEFAULT_ROLE = "USER"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    email: str


class AuthService:
    """Creates accounts and exchanges credentials for identity tokens."""

    def __init__(self, tokens: TokenService, *, users_repo: ModuleType = users_orm):
        self._tokens = tokens
        self._users = users_repo

    async def register(self, email: str, password: str) -> Result[IssuedToken]:
        email = normalize_email(email)
        if await self._users.email_exists(email):
            return validation_failure("Email already exists")

        user = await self._users.create_user(email, hash_password(password), DEFAULT_ROLE)
        if user is None:
            return validation_failure("Email already exists")

        logger.info(f"Registered user {user.id}")
        return Ok(IssuedToken(token=self._issue(user.email, user.role), email=user.email))

    async def login(self, email: str, password: str) -> Result[IssuedToken]:
        user = await self._users.get_user_by_email(normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Rejected login attempt")
            return unauthenticated("Invalid credentials")

        return Ok(IssuedToken(token=self._issue(user.email, user.role), email=user.email))

    def _issue(self, email: str, role: str) -> str:
        return self._tokens.issue(email, {"role": role})
