"""
Student endpoints: signup with email verification, cookie-backed sessions,
Google sign-in, profile upkeep, applications and the wishlist.
"""
import secrets

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from abroad_api.core.config import settings
from abroad_api.core.database import get_db
from abroad_api.core.exceptions import AuthorizationError, OAuthError, ServiceUnavailableError
from abroad_api.core.logging_config import logger
from abroad_api.core.rate_limiter import auth_rate_limit, strict_rate_limit
from abroad_api.models import Principal, Student
from abroad_api.modules.auth.cookies import (
    client_ip,
    logout_response,
    read_refresh_cookie,
    set_refresh_cookie,
)
from abroad_api.modules.auth.dependencies import (
    SessionContext,
    get_current_principal,
    get_current_session,
    require_admin_or_superadmin,
    require_student,
    require_superadmin,
)
from abroad_api.modules.oauth.google_provider import google_oauth
from abroad_api.schemas.principal import (
    AccessTokenResponse,
    ApplyRequest,
    AssignCounselorRequest,
    DeletedResponse,
    ForgotPasswordRequest,
    GoogleIdTokenRequest,
    LoginRequest,
    MessageResponse,
    PasswordUpdate,
    ResetPasswordRequest,
    StudentAdminUpdate,
    StudentEnvelope,
    StudentListEnvelope,
    StudentLoginResponse,
    StudentProfileUpdate,
    StudentRegister,
    StudentResponse,
    WishlistItem,
    WishlistResponse,
    WishlistToggleRequest,
)
from abroad_api.services.principal_service import STUDENT, IssuedSession, PrincipalService

router = APIRouter()

OAUTH_STATE_COOKIE = "oauthState"


def _login_payload(session: IssuedSession) -> StudentLoginResponse:
    student = session.principal
    return StudentLoginResponse(
        id=student.id,
        user_name=student.name,
        email=student.email,
        role=student.role,
        token=session.access_token,
        refresh_token=session.refresh_token,
    )


def _envelope(message: str, student: Student) -> StudentEnvelope:
    return StudentEnvelope(message=message, student=StudentResponse.from_student(student))


# ==================== Registration & sessions ====================

@router.post("/register", response_model=StudentEnvelope, status_code=status.HTTP_201_CREATED)
@strict_rate_limit()
async def register_student(
    request: Request,
    data: StudentRegister,
    db: AsyncSession = Depends(get_db)
):
    """Create a student and email a verification link (rate limited: 3/min)"""
    student = await PrincipalService(db).register(
        STUDENT, data.user_name, data.email, data.password, data.mobile
    )
    return _envelope("Student created successfully", student)


@router.post("/login", response_model=StudentLoginResponse)
@auth_rate_limit()
async def login_student(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Log a student in (rate limited: 5/min).

    Unverified students receive a fresh verification email and a 400.
    """
    service = PrincipalService(db)
    ip = client_ip(request)
    student = await service.authenticate(STUDENT, credentials.email, credentials.password, ip)
    session = await service.issue_session(student, ip)
    set_refresh_cookie(response, session.refresh_token)
    return _login_payload(session)


@router.get("/refresh-token", response_model=AccessTokenResponse)
async def refresh_student_token(request: Request, db: AsyncSession = Depends(get_db)):
    access_token = await PrincipalService(db).refresh_access_token(STUDENT, read_refresh_cookie(request))
    return AccessTokenResponse(access_token=access_token)


@router.get("/logout")
async def logout_student(request: Request, db: AsyncSession = Depends(get_db)):
    found = await PrincipalService(db).logout(STUDENT, read_refresh_cookie(request))
    return logout_response(found)


# ==================== Passwords & verification ====================

@router.put("/password", response_model=MessageResponse)
async def update_student_password(
    data: PasswordUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).update_password(STUDENT, principal, data.password, data.id)
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password-token", response_model=MessageResponse)
@strict_rate_limit()
async def forgot_student_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).request_password_reset(STUDENT, data.email)
    return MessageResponse(message="Password reset link sent to your email")


@router.put("/reset-password/{token}", response_model=MessageResponse)
async def reset_student_password(
    token: str,
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    await PrincipalService(db).reset_password(STUDENT, token, data.password)
    return MessageResponse(message="Password reset successfully")


@router.get("/verify-email/{token}")
async def verify_student_email(token: str, db: AsyncSession = Depends(get_db)):
    """Consume the emailed token and send the browser back to the site"""
    await PrincipalService(db).consume_verification_token(token)
    return RedirectResponse(settings.frontend_link("email-verified"))


# ==================== Google sign-in ====================

def _require_google():
    if not google_oauth.is_configured:
        raise ServiceUnavailableError("Google sign-in is not configured")


def _state_matches(expected: Optional[str], received: Optional[str]) -> bool:
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode(), received.encode())


@router.get("/google")
async def google_login():
    """Redirect to Google's consent screen"""
    _require_google()
    state = google_oauth.new_state()
    response = RedirectResponse(google_oauth.get_authorization_url(state=state))
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True,
                        samesite=settings.REFRESH_COOKIE_SAMESITE)
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    _require_google()
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not code or not _state_matches(expected_state, state):
        logger.log_auth_event(event="google_oauth", success=False, reason="Missing code or state mismatch",
                              client_ip=client_ip(request))
        raise OAuthError()

    google_user = await google_oauth.authenticate(code)
    if google_user is None:
        raise OAuthError()

    service = PrincipalService(db)
    student = await service.find_or_create_google_student(google_user)
    session = await service.issue_session(student, client_ip(request))

    response = RedirectResponse(settings.FRONTEND_URL)
    set_refresh_cookie(response, session.refresh_token)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@router.post("/google/token", response_model=StudentLoginResponse)
async def google_token_login(
    request: Request,
    response: Response,
    data: GoogleIdTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Sign in with an ID token from the frontend's Google button"""
    _require_google()
    google_user = google_oauth.verify_id_token(data.credential)
    if google_user is None:
        raise OAuthError("Invalid Google credential")

    service = PrincipalService(db)
    student = await service.find_or_create_google_student(google_user)
    session = await service.issue_session(student, client_ip(request))
    set_refresh_cookie(response, session.refresh_token)
    return _login_payload(session)


# ==================== Staff views ====================

@router.get("/bycounselor", response_model=StudentListEnvelope)
async def students_by_counselor(
    counselor: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Students assigned to the calling admin"""
    students = await PrincipalService(db).students_for_counselor(counselor.id)
    return StudentListEnvelope(
        count_total=len(students),
        message="Assigned students",
        students=[StudentResponse.from_student(s) for s in students],
    )


@router.put("/update-by-admin/{student_id}", response_model=StudentEnvelope)
async def update_student_by_admin(
    student_id: str,
    data: StudentAdminUpdate,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    student = await PrincipalService(db).update_student_by_staff(
        student_id,
        user_name=data.user_name,
        email=data.email,
        category=data.category,
        university_id=data.university_id,
        status=data.status,
    )
    return _envelope("Student updated successfully", student)


@router.put("/assign-counselor/{student_id}", response_model=StudentEnvelope)
async def assign_counselor(
    student_id: str,
    data: AssignCounselorRequest,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    student, _counselor = await PrincipalService(db).assign_counselor(student_id, data.counselor)
    return _envelope("Counselor assigned successfully", student)


# ==================== Student self-service ====================

@router.put("/apply", response_model=StudentEnvelope)
async def apply_to_university(
    data: ApplyRequest,
    student: Student = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    student = await PrincipalService(db).apply_to_university(student, data.university, data.course)
    return _envelope("Application submitted successfully", student)


@router.put("/wishlist", response_model=StudentEnvelope)
async def toggle_wishlist(
    data: WishlistToggleRequest,
    student: Student = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    student, added = await PrincipalService(db).toggle_wishlist(student, data.wishlist)
    message = "University added to wishlist" if added else "University removed from wishlist"
    return _envelope(message, student)


@router.get("/wishlist", response_model=WishlistResponse)
async def get_wishlist(student: Student = Depends(require_student)):
    return WishlistResponse(
        id=student.id,
        user_name=student.name,
        wishlist=[WishlistItem(id=uni.id, name=uni.name) for uni in student.wishlist],
    )


@router.put("/update/{student_id}", response_model=StudentEnvelope)
async def update_student(
    student_id: str,
    data: StudentProfileUpdate,
    context: SessionContext = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """A student may edit their own profile; staff may edit anyone's"""
    if isinstance(context.principal, Student) and context.principal.id != student_id:
        raise AuthorizationError("You can only update your own profile.")

    student = await PrincipalService(db).update_student_profile(
        student_id, data.model_dump(exclude_unset=True)
    )
    return _envelope("Profile updated successfully", student)


@router.get("/get-student/{student_id}", response_model=StudentEnvelope)
async def get_student(
    student_id: str,
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    student = await PrincipalService(db).require(STUDENT, student_id)
    return _envelope("Student fetched successfully", student)


@router.get("/", response_model=StudentListEnvelope)
async def list_students(
    _: Principal = Depends(require_admin_or_superadmin),
    db: AsyncSession = Depends(get_db)
):
    students = await PrincipalService(db).list_all(STUDENT)
    return StudentListEnvelope(
        count_total=len(students),
        message="All students",
        students=[StudentResponse.from_student(s) for s in students],
    )


@router.delete("/{student_id}", response_model=DeletedResponse)
async def delete_student(
    student_id: str,
    _: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    deleted_id = await PrincipalService(db).delete(STUDENT, student_id)
    return DeletedResponse(message="Student deleted successfully", id=deleted_id)
