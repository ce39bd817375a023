"""Per-request caller identity."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved from a token subject."""

    user_id: int
    email: str
    role: str = "USER"


@dataclass(frozen=True)
class RequestContext:
    """Values established for one in-flight request.

    Immutable; each pipeline step returns a new context. The identity can be
    attached once and is never replaced afterwards.
    """

    request_id: str | None = None
    identity: Identity | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    def with_request_id(self, request_id: str) -> RequestContext:
        return replace(self, request_id=request_id)

    def with_identity(self, identity: Identity) -> RequestContext:
        if self.identity is not None:
            return self
        return replace(self, identity=identity)
