"""
Admin (counselor) endpoints. Admin accounts are created and managed by
superadmins; admins themselves only log in and change their password.
"""
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
    AdminEnvelope,
    AdminListEnvelope,
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
)
from abroad_api.services.principal_service import ADMIN, PrincipalService

router = APIRouter()


@router.post("/register", response_model=AdminEnvelope, status_code=status.HTTP_201_CREATED)
async def register_admin(
    data: AdminRegister,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    admin = await PrincipalService(db).register(
        ADMIN, data.admin_name, data.email, data.password, data.mobile
    )
    return AdminEnvelope(message="Admin created successfully", admin=AdminResponse.from_principal(admin))


@router.post("/login", response_model=AdminLoginResponse)
@auth_rate_limit()
async def login_admin(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Log an admin in (rate limited: 5/min)"""
    service = PrincipalService(db)
    ip = client_ip(request)
    admin = await service.authenticate(ADMIN, credentials.email, credentials.password, ip)
    session = await service.issue_session(admin, ip)
    set_refresh_cookie(response, session.refresh_token)
    return AdminLoginResponse(
        id=admin.id,
        admin_name=admin.name,
        email=admin.email,
        role=admin.role,
        token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.get("/refresh-token", response_model=AccessTokenResponse)
async def refresh_admin_token(request: Request, db: AsyncSession = Depends(get_db)):
    access_token = await PrincipalService(db).refresh_access_token(ADMIN, read_refresh_cookie(request))
    return AccessTokenResponse(access_token=access_token)


@router.get("/logout")
async def logout_admin(request: Request, db: AsyncSession = Depends(get_db)):
    found = await PrincipalService(db).logout(ADMIN, read_refresh_cookie(request))
    return logout_response(found)


@router.put("/password", response_model=MessageResponse)
async def update_admin_password(
    data: PasswordUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).update_password(ADMIN, principal, data.password, data.id)
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password-token", response_model=MessageResponse)
@strict_rate_limit()
async def forgot_admin_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).request_password_reset(ADMIN, data.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.put("/reset-password/{token}", response_model=MessageResponse)
async def reset_admin_password(
    token: str,
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).reset_password(ADMIN, token, data.password)
    return MessageResponse(message="Password reset successfully")


@router.get("/", response_model=AdminListEnvelope)
async def list_admins(
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    admins = await PrincipalService(db).list_all(ADMIN)
    return AdminListEnvelope(
        count_total=len(admins),
        message="All admins",
        admins=[AdminResponse.from_principal(a) for a in admins],
    )


@router.put("/update/{admin_id}", response_model=AdminEnvelope)
async def update_admin(
    admin_id: str,
    data: AdminUpdate,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    admin = await PrincipalService(db).update_staff(
        ADMIN, admin_id,
        name=data.admin_name,
        email=data.email,
        mobile=data.mobile,
        password=data.password,
    )
    return AdminEnvelope(message="Admin updated successfully", admin=AdminResponse.from_principal(admin))


@router.get("/{admin_id}", response_model=AdminEnvelope)
async def get_admin(
    admin_id: str,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    admin = await PrincipalService(db).require(ADMIN, admin_id)
    return AdminEnvelope(message="Admin fetched successfully", admin=AdminResponse.from_principal(admin))


@router.delete("/{admin_id}", response_model=DeletedResponse)
async def delete_admin(
    admin_id: str,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await PrincipalService(db).delete(ADMIN, admin_id)
    return DeletedResponse(message="Admin deleted successfully", id=deleted_id)
