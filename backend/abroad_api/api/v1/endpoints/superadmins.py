"""Superadmin endpoints"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.database import get_db
from abroad_api.core.rate_limiter import auth_rate_limit, strict_rate_limit
from abroad_api.models import Principal
from abroad_api.modules.auth.cookies import (
    client_ip,
    logout_response,
    read_refresh_cookie,
    set_refresh_cookie,
)
from abroad_api.modules.auth.dependencies import get_current_principal, require_superadmin
from abroad_api.schemas.principal import (
    AccessTokenResponse,
    AdminLoginResponse,
    AdminRegister,
    AdminResponse,
    AdminUpdate,
    DeletedResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    PasswordUpdate,
    ResetPasswordRequest,
    SuperadminEnvelope,
    SuperadminListEnvelope,
)
from abroad_api.services.principal_service import SUPERADMIN, PrincipalService

router = APIRouter()


@router.post("/register", response_model=SuperadminEnvelope, status_code=status.HTTP_201_CREATED)
async def register_superadmin(
    data: AdminRegister,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Only an existing superadmin can create another (the first comes from scripts/create_superadmin.py)"""
    superadmin = await PrincipalService(db).register(
        SUPERADMIN, data.admin_name, data.email, data.password, data.mobile
    )
    return SuperadminEnvelope(
        message="Superadmin created successfully",
        superadmin=AdminResponse.from_principal(superadmin),
    )


@router.post("/login", response_model=AdminLoginResponse)
@auth_rate_limit()
async def login_superadmin(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    service = PrincipalService(db)
    ip = client_ip(request)
    superadmin = await service.authenticate(SUPERADMIN, credentials.email, credentials.password, ip)
    session = await service.issue_session(superadmin, ip)
    set_refresh_cookie(response, session.refresh_token)
    return AdminLoginResponse(
        id=superadmin.id,
        admin_name=superadmin.name,
        email=superadmin.email,
        role=superadmin.role,
        token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.get("/refresh-token", response_model=AccessTokenResponse)
async def refresh_superadmin_token(request: Request, db: AsyncSession = Depends(get_db)):
    access_token = await PrincipalService(db).refresh_access_token(SUPERADMIN, read_refresh_cookie(request))
    return AccessTokenResponse(access_token=access_token)


@router.get("/logout")
async def logout_superadmin(request: Request, db: AsyncSession = Depends(get_db)):
    found = await PrincipalService(db).logout(SUPERADMIN, read_refresh_cookie(request))
    return logout_response(found)


@router.put("/password", response_model=MessageResponse)
async def update_superadmin_password(
    data: PasswordUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).update_password(SUPERADMIN, principal, data.password, data.id)
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password-token", response_model=MessageResponse)
@strict_rate_limit()
async def forgot_superadmin_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).request_password_reset(SUPERADMIN, data.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.put("/reset-password/{token}", response_model=MessageResponse)
async def reset_superadmin_password(
    token: str,
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).reset_password(SUPERADMIN, token, data.password)
    return MessageResponse(message="Password reset successfully")


@router.get("/", response_model=SuperadminListEnvelope)
async def list_superadmins(
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    superadmins = await PrincipalService(db).list_all(SUPERADMIN)
    return SuperadminListEnvelope(
        count_total=len(superadmins),
        message="All superadmins",
        superadmins=[AdminResponse.from_principal(s) for s in superadmins],
    )


@router.put("/update/{superadmin_id}", response_model=SuperadminEnvelope)
async def update_superadmin(
    superadmin_id: str,
    data: AdminUpdate,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    superadmin = await PrincipalService(db).update_staff(
        SUPERADMIN, superadmin_id,
        name=data.admin_name,
        email=data.email,
        mobile=data.mobile,
        password=data.password,
    )
    return SuperadminEnvelope(
        message="Superadmin updated successfully",
        superadmin=AdminResponse.from_principal(superadmin),
    )


@router.get("/{superadmin_id}", response_model=SuperadminEnvelope)
async def get_superadmin(
    superadmin_id: str,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    superadmin = await PrincipalService(db).require(SUPERADMIN, superadmin_id)
    return SuperadminEnvelope(
        message="Superadmin fetched successfully",
        superadmin=AdminResponse.from_principal(superadmin),
    )


@router.delete("/{superadmin_id}", response_model=DeletedResponse)
async def delete_superadmin(
    superadmin_id: str,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await PrincipalService(db).delete(SUPERADMIN, superadmin_id)
    return DeletedResponse(message="Superadmin deleted successfully", id=deleted_id)
