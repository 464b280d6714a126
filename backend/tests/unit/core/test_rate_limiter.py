"""
Unit Tests for Rate Limiting
"""
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from abroad_api.core.rate_limiter import get_client_identifier, rate_limit_exceeded_handler
from abroad_api.main import app


def _limited_app(per_minute: int) -> FastAPI:
    """Small app wired the same way as the API, with limiting switched on"""
    limited = FastAPI()
    limited.state.limiter = Limiter(
        key_func=get_client_identifier,
        default_limits=[f"{per_minute}/minute"],
        storage_uri="memory://",
        enabled=True,
    )
    limited.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    limited.add_middleware(SlowAPIMiddleware)

    @limited.get('/ping')
    async def ping():
        return {'ok': True}

    return limited


class TestDefaultLimit:
    """Routes without their own limit fall under the per-minute default"""

    def test_api_installs_limit_middleware(self):
        assert SlowAPIMiddleware in [m.cls for m in app.user_middleware]

    async def test_requests_over_default_limit_refused(self):
        transport = ASGITransport(app=_limited_app(2))
        async with AsyncClient(transport=transport, base_url='http://test') as ac:
            assert (await ac.get('/ping')).status_code == 200
            assert (await ac.get('/ping')).status_code == 200

            response = await ac.get('/ping')

        assert response.status_code == 429
        assert response.json()['message'] == 'Too many requests. Please slow down.'
        assert response.headers['Retry-After'] == '60'

