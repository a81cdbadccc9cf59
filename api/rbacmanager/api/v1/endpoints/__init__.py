"""API routes package."""

from . import health, rbac, simulate

__all__ = ["health", "rbac", "simulate"]
