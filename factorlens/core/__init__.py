"""Core infrastructure: settings, security, logging, errors, identity."""

from .access import AccessControlService, AccessDecision
from .config import settings
from .exceptions import (
    AppException,
    AuthenticationError,
    DownstreamUnavailableError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    exception_for_failure,
    unwrap,
)
from .identity import Identity, RequestContext
from .results import ErrorKind, Failure, Ok, Result
from .security import TokenService, build_token_service, hash_password, verify_password


__all__ = [
    "AccessControlService",
    "AccessDecision",
    "AppException",
    "AuthenticationError",
    "DownstreamUnavailableError",
    "ErrorKind",
    "ExternalServiceError",
    "Failure",
    "Identity",
    "NotFoundError",
    "Ok",
    "RequestContext",
    "Result",
    "TokenService",
    "ValidationError",
    "build_token_service",
    "exception_for_failure",
    "hash_password",
    "settings",
    "unwrap",
    "verify_password",
]
