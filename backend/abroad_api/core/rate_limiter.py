"""
Rate Limiting for the College Abroad API
========================================
slowapi limiter keyed on the resolved principal, falling back to client IP.

Routes without a limit of their own get RATE_LIMIT_PER_MINUTE through
SlowAPIMiddleware. Credential endpoints carry their own limits:
- login: 5 req/min (brute force protection)
- register: 3 req/min
- forgot-password-token: 3 req/min

Storage defaults to in-process memory; point RATE_LIMIT_STORAGE_URI at any
``limits`` backend (redis://...) to share counters between workers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from abroad_api.core.config import settings
from abroad_api.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: principal id when a session was resolved, else IP address"""
    principal = getattr(request.state, 'principal', None)
    if principal is not None:
        return f"principal:{principal.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 with a Retry-After hint"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limited", "http_path": request.url.path},
    )

    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"},
    )


def auth_rate_limit():
    """Rate limit for credential checks (5/min)"""
    return limiter.limit("5/minute")


def strict_rate_limit():
    """Very strict rate limit for account creation and reset mail (3/min)"""
    return limiter.limit("3/minute")
