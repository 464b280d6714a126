"""Refresh-token cookie handling shared by the student, admin and superadmin routes"""
from typing import Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from abroad_api.core.config import settings
from abroad_api.core.security import token_service


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def read_refresh_cookie(request: Request) -> Optional[str]:
    """The only place the refresh cookie is read from"""
    return request.cookies.get(settings.REFRESH_COOKIE_NAME) or None


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=token_service.refresh_max_age,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def logout_response(found: bool) -> Response:
    """200 when a stored token was cleared, 204 otherwise; the cookie goes either way"""
    if found:
        response: Response = JSONResponse({"message": "Logged out successfully"})
    else:
        response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_refresh_cookie(response)
    return response
