"""Logging middleware for request/response tracking."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from rbacmanager.core.logging import get_logger, log_event

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emits request_started / request_completed / request_failed events."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        request_info = {
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client_host": request.client.host if request.client else None,
        }
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            request_info["request_id"] = request_id

        log_event(logger, "info", "request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as e:
            log_event(
                logger,
                "error",
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=time.perf_counter() - start_time,
                **request_info,
            )
            raise

        duration = time.perf_counter() - start_time
        log_event(
            logger,
            "warning" if response.status_code >= 500 else "info",
            "request_completed",
            status_code=response.status_code,
            duration_seconds=duration,
            **request_info,
        )
        response.headers["X-Process-Time"] = f"{duration:.6f}"
        return response
