"""
Middleware for collecting HTTP request metrics
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from catstyle.core.metrics import (http_errors_total,
                                   http_request_duration_seconds,
                                   http_requests_total)


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP request metrics for Prometheus
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()
        error_type = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            duration = time.time() - start_time
            # Unmatched paths share one label to keep cardinality bounded
            endpoint = request.url.path if status_code != 404 else "unmatched"
            labels = {
                "method": request.method,
                "endpoint": endpoint,
                "status_code": str(status_code),
            }

            http_requests_total.labels(**labels).inc()
            http_request_duration_seconds.labels(**labels).observe(duration)
            if status_code >= 400:
                http_errors_total.labels(
                    error_type=error_type or f"http_{status_code}",
                    **labels,
                ).inc()
