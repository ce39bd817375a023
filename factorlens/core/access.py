"""Ownership checks for per-user resources.

A caller that does not own a resource gets exactly the same answer as a caller
asking for a resource that does not exist. Existence of another user's data is
never revealed, so there is no "forbidden" outcome here.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, TypeVar

from .results import Ok, Result, not_found


class AccessDecision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


class Owned(Protocol):
    user_id: int


R = TypeVar("R", bound=Owned)


class AccessControlService:
    """Decides whether a caller may read or mutate an owned resource."""

    def authorize(self, resource_owner_id: int | None, caller_id: int) -> AccessDecision:
        if resource_owner_id is None or resource_owner_id != caller_id:
            return AccessDecision.DENIED
        return AccessDecision.ALLOWED

    def check_owned(
        self, resource: R | None, caller_id: int, resource_label: str
    ) -> Result[R]:
        """Return the resource if the caller owns it, else a not-found failure.

        ``resource`` is ``None`` when the lookup found nothing; both cases
        produce the same failure.
        """
        owner_id = resource.user_id if resource is not None else None
        if self.authorize(owner_id, caller_id) is AccessDecision.DENIED:
            return not_found(f"{resource_label} not found")
        return Ok(resource)
