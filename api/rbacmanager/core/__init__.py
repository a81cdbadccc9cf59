"""Core utilities package."""

from .exceptions import (CollaboratorError, InconsistencyWarning, RBACError,
                         ValidationError)
from .logging import get_logger, log_event, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_event",
    "RBACError",
    "ValidationError",
    "CollaboratorError",
    "InconsistencyWarning",
]
