"""Security utilities: password hashing and signed identity tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

import bcrypt
import jwt

from .config import settings
from .logging import get_logger
from .results import Ok, Result, unauthenticated


logger = get_logger("security")

# JWT Configuration
JWT_ALGORITHM = "HS256"

# Claims owned by the token service; extra claims cannot override them
RESERVED_CLAIMS = frozenset({"sub", "iat", "exp"})

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(password: str) -> str:
    """Hash password using bcrypt with salt."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class TokenService:
    """Issues and validates stateless HMAC-signed identity tokens.

    A token is ``header.payload.signature`` (JWT, HS256). The payload holds the
    subject (user email), issued-at and expiry; nothing is stored server side,
    so any process configured with the same secret can verify it.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta,
        algorithm: str = JWT_ALGORITHM,
        clock: Clock = utc_now,
    ):
        self._secret = secret
        self._ttl = ttl
        self._algorithm = algorithm
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, subject: str, extra_claims: Optional[Mapping[str, Any]] = None) -> str:
        """Create a signed token for ``subject`` expiring after the configured TTL."""
        now = self._clock()
        payload: dict[str, Any] = {
            key: value
            for key, value in (extra_claims or {}).items()
            if key not in RESERVED_CLAIMS
        }
        payload.update(
            {
                "sub": subject,
                "iat": int(now.timestamp()),
                "exp": int((now + self._ttl).timestamp()),
            }
        )
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def extract_subject(self, token: str) -> Result[str]:
        """Verify the signature and return the subject.

        Expiry is not checked here; see ``is_valid``.
        """
        claims = self._decode(token)
        if claims is None:
            return unauthenticated("Malformed token")
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            return unauthenticated("Malformed token")
        return Ok(subject)

    def is_valid(self, token: str, expected_subject: str) -> bool:
        """True iff the token belongs to ``expected_subject`` and has not expired."""
        claims = self._decode(token)
        if claims is None:
            return False
        expires = claims.get("exp")
        if not isinstance(expires, (int, float)):
            return False
        if claims.get("sub") != expected_subject:
            return False
        return expires > self._clock().timestamp()

    def _decode(self, token: str) -> dict[str, Any] | None:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected token: {type(e).__name__}")
            return None
        return claims if isinstance(claims, dict) else None


def build_token_service(clock: Clock = utc_now) -> TokenService:
    """Token service configured from application settings."""
    return TokenService(
        settings.auth_secret,
        ttl=timedelta(minutes=settings.access_token_expire_minutes),
        clock=clock,
    )


__all__ = [
    "JWT_ALGORITHM",
    "TokenService",
    "build_token_service",
    "hash_password",
    "utc_now",
    "verify_password",
]
