"""Request context middleware: request ids and security headers."""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from rbacmanager.config.settings import settings
from rbacmanager.core.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and hardens response headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in (
            settings.health_check_path,
            settings.readiness_check_path,
        ):
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        if settings.debug:
            logger.debug(
                f"Handling {request.method} {request.url.path}",
                extra={"request_id": request_id},
            )

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Request-ID"] = request_id
        return response
