"""API route modules."""

from . import analysis, auth, health, holdings


__all__ = ["analysis", "auth", "health", "holdings"]
