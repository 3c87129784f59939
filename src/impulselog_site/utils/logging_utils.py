"""
Request and lifecycle logging helpers.

`RequestLoggingMiddleware` records one line per request (method, path, status, duration).
`log_application_lifecycle` and `log_error_with_context` give startup/shutdown and failure
events a consistent, structured shape.
"""

import time
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from impulselog_site.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status code and wall-clock duration."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.time() - start_time
            request_logger.error(
                "%s %s failed after %.3fs", request.method, request.url.path, duration, exc_info=True
            )
            raise

        duration = time.time() - start_time
        request_logger.info(
            "%s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, duration
        )
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event such as `startup_completed`."""
    if details:
        lifecycle_logger.info("%s: %s", event, details)
    else:
        lifecycle_logger.info("%s", event)


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception together with the operation context it happened in."""
    error_logger.error(
        "%s: %s | context=%s", type(error).__name__, error, context or {}, exc_info=error
    )
