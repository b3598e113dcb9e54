"""
FastAPI middleware for request context and logging
"""
import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from catstyle.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled endpoints; logged at DEBUG so they do not drown suggestion traffic
QUIET_PATH_SUFFIXES = ("/health", "/health/liveness", "/metrics")


def _route_path(request: Request) -> Optional[str]:
    """Path template of the matched route, None when nothing matched"""
    route = request.scope.get("route")
    return getattr(route, "path", None)


def _completion_level(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path.endswith(QUIET_PATH_SUFFIXES):
        return logging.DEBUG
    return logging.INFO


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every log line of a request with its id, method and path

    The completion line also carries the matched route template, the status
    and the duration; errors are logged at WARNING (4xx) or ERROR (5xx).
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path

        LoggingConfig.set_context(
            request_id=request_id,
            method=request.method,
            path=path,
            client_host=request.client.host if request.client else None,
        )

        start_time = time.time()
        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "Request failed",
                    exc_info=True,
                    extra={
                        "route": _route_path(request),
                        "error_type": type(e).__name__,
                        "duration_ms": int((time.time() - start_time) * 1000),
                    }
                )
                raise

            logger.log(
                _completion_level(path, response.status_code),
                f"{request.method} {path} -> {response.status_code}",
                extra={
                    "route": _route_path(request),
                    "status_code": response.status_code,
                    "duration_ms": int((time.time() - start_time) * 1000),
                }
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            LoggingConfig.clear_context()
