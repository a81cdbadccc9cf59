"""HTTP middleware package."""

from .context import RequestContextMiddleware
from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "RequestContextMiddleware"]
