"""Explicit success/failure values returned by services.

Services never raise for expected domain outcomes. They return ``Ok(value)``
or a ``Failure`` carrying an ``ErrorKind``; the API layer translates a
``Failure`` into an HTTP response exactly once (see ``core.exceptions``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Terminal outcomes a request can end in besides success."""

    VALIDATION_FAILURE = "validation_failure"
    UNAUTHENTICATED = "unauthenticated"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DOWNSTREAM_REJECTED = "downstream_rejected"
    DOWNSTREAM_UNAVAILABLE = "downstream_unavailable"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Failed outcome.

    ``status_code`` is only set for DOWNSTREAM_REJECTED, where the engine's
    own status (400 or 404) is carried through to the caller.
    """

    kind: ErrorKind
    message: str
    status_code: int | None = None


Result = Union[Ok[T], Failure]


def validation_failure(message: str) -> Failure:
    return Failure(ErrorKind.VALIDATION_FAILURE, message)


def not_found(message: str) -> Failure:
    return Failure(ErrorKind.RESOURCE_NOT_FOUND, message)


def unauthenticated(message: str = "Authentication required") -> Failure:
    return Failure(ErrorKind.UNAUTHENTICATED, message)
