"""
Session resolution and role gates.

``get_current_session`` turns ``Authorization: Bearer <access token>`` into the
principal it names, recomputed on every request, and stores it on
``request.state``. The gate dependencies read that state back; a request that
reaches a gate without a resolved principal is refused, never crashed.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.core.exceptions import (
    AuthorizationError,
    InvalidTokenError,
    MissingCredentialsError,
    UnknownPrincipalError,
)
from abroad_api.core.logging_config import logger, set_principal
from abroad_api.core.security import ACCESS_TOKEN, token_service
from abroad_api.models import Principal, PrincipalRole, Student
from abroad_api.services.principal_service import PrincipalService, STAFF_ROLES

# auto_error=False so a missing header gets our own 401 message
security = HTTPBearer(auto_error=False)

ADMIN_OR_SUPERADMIN_MESSAGE = "Access denied. Only Admin or Super Admin allowed."
SUPERADMIN_MESSAGE = "Only Super Admin allowed."


@dataclass
class SessionContext:
    principal: Principal
    role: str


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> SessionContext:
    """Resolve the bearer token into a principal or reject with 401"""
    client_ip = request.client.host if request.client else "unknown"

    if credentials is None or not credentials.credentials:
        # Precondition failure, kept apart from bad credentials in the logs
        logger.log_auth_event(event="session", success=False, reason="Authorization header missing",
                              client_ip=client_ip, http_path=request.url.path)
        raise MissingCredentialsError()

    try:
        payload = token_service.verify(credentials.credentials, expected_type=ACCESS_TOKEN)
    except InvalidTokenError:
        logger.log_auth_event(event="session", success=False, reason="Access token failed verification",
                              client_ip=client_ip, http_path=request.url.path)
        raise

    principal = await PrincipalService(db).resolve(payload["sub"], payload.get("role"))
    if principal is None:
        logger.log_auth_event(event="session", success=False, reason="No principal for token subject",
                              client_ip=client_ip, principal_id=payload["sub"])
        raise UnknownPrincipalError()

    context = SessionContext(principal=principal, role=principal.role)
    request.state.session = context
    request.state.principal = principal
    request.state.role = principal.role
    set_principal(str(principal.id), principal.role)
    return context


async def get_current_principal(
    context: SessionContext = Depends(get_current_session)
) -> Principal:
    return context.principal


def ensure_admin_or_superadmin(context: Optional[SessionContext]) -> SessionContext:
    """Pass admins and superadmins; students are refused whatever role they claim"""
    if (
        context is None
        or isinstance(context.principal, Student)
        or context.role not in STAFF_ROLES
    ):
        raise AuthorizationError(ADMIN_OR_SUPERADMIN_MESSAGE)
    return context


def ensure_superadmin(context: Optional[SessionContext]) -> SessionContext:
    if context is None or context.role != PrincipalRole.SUPERADMIN.value:
        raise AuthorizationError(SUPERADMIN_MESSAGE)
    return context


async def require_admin_or_superadmin(
    request: Request,
    _: SessionContext = Depends(get_current_session)
) -> Principal:
    context = ensure_admin_or_superadmin(getattr(request.state, "session", None))
    return context.principal


async def require_superadmin(
    request: Request,
    _: SessionContext = Depends(get_current_session)
) -> Principal:
    context = ensure_superadmin(getattr(request.state, "session", None))
    return context.principal


async def require_student(
    principal: Principal = Depends(get_current_principal)
) -> Student:
    """Wishlist and applications belong to students only"""
    if not isinstance(principal, Student):
        raise AuthorizationError("Only students can perform this action.")
    return principal
