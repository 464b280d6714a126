"""
College Abroad API - HTTP Middleware
Request/Response logging, timing, security headers and body size limits
"""

import time
from typing import Callable, Dict, Any, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from abroad_api.core.logging_config import (
    logger,
    set_request_id,
    set_principal,
    generate_request_id,
)


# Paths that should skip detailed logging (health checks, docs)
SKIP_LOGGING_PATHS: Set[str] = {
    "/health",
    "/",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

SLOW_REQUEST_MS = 1000


def should_skip_logging(path: str) -> bool:
    """Check if path should skip detailed logging"""
    return path in SKIP_LOGGING_PATHS


def _principal_fields(request: Request) -> Dict[str, Any]:
    """Who made the request, once the session dependency has resolved them"""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        return {}
    return {"principal_id": str(principal.id), "principal_role": principal.role}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every API call with its outcome.

    The request id comes from an incoming X-Request-ID header or is generated,
    and is echoed back together with X-Response-Time. Refused requests
    (401/403) are tagged so failed access attempts can be filtered out of the
    stream.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        try:
            return await self._handle(request, call_next, request_id)
        finally:
            # Contexts are per request; nothing may leak into the next one
            set_request_id("")
            set_principal("")

    async def _handle(self, request: Request, call_next: Callable, request_id: str) -> Response:
        method, path = request.method, request.url.path
        quiet = should_skip_logging(path)
        started = time.perf_counter()

        if not quiet:
            logger.info(
                f"→ {method} {path}",
                extra={
                    "event_type": "http_request_start",
                    "http_method": method,
                    "http_path": path,
                    "client_ip": request.client.host if request.client else "unknown",
                    "user_agent": request.headers.get("user-agent", ""),
                }
            )

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed = (time.perf_counter() - started) * 1000
            logger.error(
                f"✗ {method} {path} raised {type(exc).__name__} after {elapsed:.2f}ms",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": method,
                    "http_path": path,
                    "duration_ms": elapsed,
                    **_principal_fields(request),
                }
            )
            raise

        elapsed = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.2f}ms"

        if quiet:
            return response

        status_code = response.status_code
        if status_code in (401, 403):
            event_type = "http_request_refused"
        else:
            event_type = "http_request_complete"

        if status_code >= 500:
            level = "error"
        elif status_code >= 400:
            level = "warning"
        else:
            level = "info"

        getattr(logger, level)(
            f"← {method} {path} - {status_code} ({elapsed:.2f}ms)",
            extra={
                "event_type": event_type,
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": elapsed,
                **_principal_fields(request),
            }
        )

        if elapsed > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {method} {path} took {elapsed:.2f}ms",
                extra={"event_type": "slow_request", "http_path": path, "duration_ms": elapsed}
            )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the browser hardening headers the public site expects"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers[name] = value
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Refuses bodies larger than ``max_size`` before they reach a route.

    Images are uploaded elsewhere and only their metadata comes through
    here, so the limit stays low.
    """

    def __init__(self, app: ASGIApp, max_size: int = 10 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length")

        if declared and declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Request body too large: {declared} bytes (max: {self.max_size})",
                extra={
                    "event_type": "request_too_large",
                    "content_length": int(declared),
                    "max_size": self.max_size,
                    "http_path": request.url.path,
                }
            )
            return JSONResponse(
                status_code=413,
                content={"message": f"Request body too large. Maximum size is {self.max_size // 1024 // 1024}MB"}
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "should_skip_logging",
    "SKIP_LOGGING_PATHS",
]
