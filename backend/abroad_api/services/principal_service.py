"""
Principal Service
=================
Credential and profile operations shared by the three principal kinds.

Every operation takes a ``PrincipalKind`` describing which kind the route
serves (its mapped class, role tag and user-facing label), so the register /
login / refresh / logout / reset logic exists once instead of three times.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from abroad_api.core.exceptions import (
    AuthorizationError,
    ConflictError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    InvalidTokenError,
    InvalidVerificationTokenError,
    PrincipalNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from abroad_api.core.logging_config import logger, set_principal
from abroad_api.core.security import (
    REFRESH_TOKEN,
    credential_service,
    token_service,
)
from abroad_api.core.types import is_valid_uuid
from abroad_api.models import (
    Admin,
    Application,
    Principal,
    PrincipalRole,
    Student,
    Superadmin,
    University,
)
from abroad_api.services.email_service import email_service


@dataclass(frozen=True)
class PrincipalKind:
    model: Type[Principal]
    role: PrincipalRole
    label: str
    verifies_email: bool = False

    @property
    def not_found_message(self) -> str:
        return f"{self.label} not found"


STUDENT = PrincipalKind(Student, PrincipalRole.STUDENT, "Student", verifies_email=True)
ADMIN = PrincipalKind(Admin, PrincipalRole.ADMIN, "Admin")
SUPERADMIN = PrincipalKind(Superadmin, PrincipalRole.SUPERADMIN, "Superadmin")

KINDS_BY_ROLE: Dict[str, PrincipalKind] = {
    kind.role.value: kind for kind in (STUDENT, ADMIN, SUPERADMIN)
}

# Lookup precedence for tokens that carry no role claim
RESOLUTION_ORDER: Tuple[PrincipalKind, ...] = (SUPERADMIN, ADMIN, STUDENT)

STAFF_ROLES = {PrincipalRole.ADMIN.value, PrincipalRole.SUPERADMIN.value}

INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token"


@dataclass
class IssuedSession:
    principal: Principal
    access_token: str
    refresh_token: str


class PrincipalService:
    """Operations on students, admins and superadmins within one request's session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Lookups ====================

    async def get(self, kind: PrincipalKind, principal_id: str) -> Optional[Principal]:
        if not principal_id or not is_valid_uuid(principal_id):
            return None
        result = await self.db.execute(
            select(kind.model).where(kind.model.id == str(principal_id))
        )
        return result.scalar_one_or_none()

    async def require(self, kind: PrincipalKind, principal_id: str) -> Principal:
        principal = await self.get(kind, principal_id)
        if principal is None:
            raise PrincipalNotFoundError(kind.not_found_message, resource_id=principal_id)
        return principal

    async def get_by_email(self, kind: PrincipalKind, email: str) -> Optional[Principal]:
        result = await self.db.execute(
            select(kind.model).where(kind.model.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_all(self, kind: PrincipalKind) -> List[Principal]:
        result = await self.db.execute(
            select(kind.model).order_by(kind.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def resolve(self, principal_id: str, role: Optional[str] = None) -> Optional[Principal]:
        """
        Find the principal a verified access token refers to.

        A role claim narrows the lookup to that kind; without one the kinds
        are tried in RESOLUTION_ORDER and the first match wins.
        """
        if role:
            kind = KINDS_BY_ROLE.get(role)
            if kind is None:
                return None
            return await self.get(kind, principal_id)

        for kind in RESOLUTION_ORDER:
            principal = await self.get(kind, principal_id)
            if principal is not None:
                return principal
        return None

    # ==================== Registration ====================

    async def _ensure_unique(self, kind: PrincipalKind, email: str, name: Optional[str],
                             exclude_id: Optional[str] = None) -> None:
        existing = await self.get_by_email(kind, email)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("Email already registered", field="email")

        # Staff display names double as a unique login-visible handle
        if kind is not STUDENT and name:
            result = await self.db.execute(
                select(kind.model).where(kind.model.name == name)
            )
            taken = result.scalar_one_or_none()
            if taken is not None and taken.id != exclude_id:
                raise ConflictError(f"{kind.label} name already taken", field="adminName")

    async def register(self, kind: PrincipalKind, name: str, email: str, password: str,
                       mobile: Optional[str] = None) -> Principal:
        email = email.strip().lower()
        await self._ensure_unique(kind, email, name)

        principal = kind.model(name=name, email=email, mobile=mobile, refresh_token="")
        principal.password = password

        raw_verification = None
        if kind.verifies_email:
            raw_verification, stored = credential_service.issue_verification_token()
            principal.is_verified = False
            principal.mail_verification_token = stored
            principal.category = "none"
            principal.tests = "none"
            # Start with loaded, empty collections so serialising never lazy-loads
            principal.applications = []
            principal.wishlist = []

        self.db.add(principal)
        await self.db.flush()

        logger.log_auth_event(event="register", success=True, user_email=email, role=kind.role.value)

        if raw_verification:
            sent = await email_service.send_verification_email(email, name, raw_verification)
            if not sent:
                logger.warning(f"[Register] Verification email not delivered to {email}")

        return principal

    # ==================== Login / session ====================

    async def authenticate(self, kind: PrincipalKind, email: Optional[str],
                           password: Optional[str], client_ip: str = "unknown") -> Principal:
        if not email or not password:
            raise ValidationError("Email and password are required")

        principal = await self.get_by_email(kind, email)
        if principal is None:
            logger.log_auth_event(event="login", success=False, user_email=email,
                                  reason="Unknown email", client_ip=client_ip, role=kind.role.value)
            raise PrincipalNotFoundError(kind.not_found_message)

        if not principal.check_password(password):
            logger.log_auth_event(event="login", success=False, user_email=email,
                                  reason="Invalid credentials", client_ip=client_ip, role=kind.role.value)
            raise InvalidCredentialsError()

        if kind.verifies_email and not principal.is_verified:
            # A fresh token replaces any earlier one
            raw, stored = credential_service.issue_verification_token()
            principal.mail_verification_token = stored
            # Persist before raising; the request session rolls back on errors
            await self.db.commit()
            await email_service.send_verification_email(principal.email, principal.name, raw)
            logger.log_auth_event(event="login", success=False, user_email=email,
                                  reason="Email not verified", client_ip=client_ip, role=kind.role.value)
            raise EmailNotVerifiedError()

        return principal

    async def issue_session(self, principal: Principal, client_ip: str = "unknown") -> IssuedSession:
        """Mint an access/refresh pair and persist the refresh token (last login wins)"""
        access_token = token_service.issue_access_token(principal.id, principal.role)
        refresh_token = token_service.issue_refresh_token(principal.id, principal.role)
        principal.refresh_token = refresh_token
        await self.db.flush()

        set_principal(principal.id, principal.role)
        logger.log_auth_event(event="login", success=True, user_email=principal.email,
                              client_ip=client_ip, role=principal.role)
        return IssuedSession(principal, access_token, refresh_token)

    async def refresh_access_token(self, kind: PrincipalKind, refresh_token: Optional[str]) -> str:
        """
        Exchange a refresh cookie for a new access token.

        The token must verify AND still be the one stored on its principal;
        a newer login or a logout makes older refresh tokens useless.
        """
        if not refresh_token:
            raise InvalidTokenError("Refresh token cookie is missing")

        try:
            payload = token_service.verify(refresh_token, expected_type=REFRESH_TOKEN)
        except InvalidTokenError:
            logger.log_auth_event(event="refresh", success=False, reason="Refresh token failed verification")
            raise InvalidTokenError(INVALID_REFRESH_MESSAGE)

        principal = await self.get(kind, payload["sub"])
        if principal is None or not principal.refresh_token or principal.refresh_token != refresh_token:
            logger.log_auth_event(event="refresh", success=False,
                                  reason="Refresh token does not match stored token")
            raise InvalidTokenError(INVALID_REFRESH_MESSAGE)

        logger.log_auth_event(event="refresh", success=True, user_email=principal.email)
        return token_service.issue_access_token(principal.id, principal.role)

    async def logout(self, kind: PrincipalKind, refresh_token: Optional[str]) -> bool:
        """Clear the stored refresh token; False when no principal owns it"""
        if not refresh_token:
            return False

        result = await self.db.execute(
            select(kind.model).where(kind.model.refresh_token == refresh_token)
        )
        principal = result.scalar_one_or_none()
        if principal is None:
            return False

        principal.refresh_token = ""
        await self.db.flush()
        logger.log_auth_event(event="logout", success=True, user_email=principal.email)
        return True

    async def find_or_create_google_student(self, google_user: Dict[str, object]) -> Student:
        """Match a Google profile to a student by Google id, then by email; create one otherwise"""
        google_id = str(google_user.get("google_id") or "")
        email = str(google_user.get("email") or "").strip().lower()
        if not google_id or not email:
            raise ValidationError("Google account did not provide an email address")

        result = await self.db.execute(select(Student).where(Student.google_id == google_id))
        student = result.scalar_one_or_none()

        if student is None:
            student = await self.get_by_email(STUDENT, email)
            if student is not None:
                student.google_id = google_id
                if google_user.get("email_verified"):
                    student.is_verified = True
                    student.mail_verification_token = None
                logger.info(f"[GoogleOAuth] Linked Google account to existing student {email}")

        if student is None:
            student = Student(
                name=google_user.get("full_name") or email.split("@")[0],
                email=email,
                google_id=google_id,
                refresh_token="",
                is_verified=bool(google_user.get("email_verified")),
                category="none",
                tests="none",
                applications=[],
                wishlist=[],
            )
            self.db.add(student)
            logger.log_auth_event(event="register", success=True, user_email=email, provider="google")

        await self.db.flush()
        return student

    # ==================== Passwords ====================

    async def update_password(self, kind: PrincipalKind, actor: Principal,
                              new_password: str, target_id: Optional[str] = None) -> Principal:
        """
        Change a password. Anyone may change their own; staff may change
        students', and only superadmins may change other staff passwords.
        """
        target_id = target_id or actor.id
        is_self = target_id == actor.id and actor.role == kind.role.value

        if not is_self:
            if kind is STUDENT:
                if actor.role not in STAFF_ROLES:
                    raise AuthorizationError("Access denied. Only Admin or Super Admin allowed.")
            elif actor.role != PrincipalRole.SUPERADMIN.value:
                raise AuthorizationError("Only Super Admin allowed.")

        target = await self.require(kind, target_id)
        target.password = new_password
        await self.db.flush()

        logger.log_auth_event(event="password_update", success=True, user_email=target.email,
                              actor_id=actor.id, self_update=is_self)
        return target

    async def request_password_reset(self, kind: PrincipalKind, email: str) -> Principal:
        principal = await self.get_by_email(kind, email)
        if principal is None:
            logger.log_auth_event(event="forgot_password", success=False, user_email=email,
                                  reason="Unknown email")
            raise PrincipalNotFoundError(f"{kind.label} not found!")

        raw, stored, expires = credential_service.issue_reset_token()
        principal.password_reset_token = stored
        principal.password_reset_expires = expires
        await self.db.flush()

        sent = await email_service.send_password_reset_email(principal.email, principal.name, raw)
        logger.log_auth_event(event="forgot_password", success=True, user_email=principal.email,
                              email_sent=sent)
        return principal

    async def consume_reset_token(self, kind: PrincipalKind, raw_token: str) -> Principal:
        """Match an unexpired stored reset hash; unknown and expired look the same"""
        result = await self.db.execute(
            select(kind.model).where(
                kind.model.password_reset_token == credential_service.hash_token(raw_token),
                kind.model.password_reset_expires > datetime.utcnow(),
            )
        )
        principal = result.scalar_one_or_none()
        if principal is None:
            logger.log_auth_event(event="reset_password", success=False, reason="Invalid or expired token")
            raise InvalidResetTokenError()
        return principal

    async def reset_password(self, kind: PrincipalKind, raw_token: str, new_password: str) -> Principal:
        principal = await self.consume_reset_token(kind, raw_token)
        principal.password = new_password
        principal.password_reset_token = None
        principal.password_reset_expires = None
        await self.db.flush()

        logger.log_auth_event(event="reset_password", success=True, user_email=principal.email)
        return principal

    async def consume_verification_token(self, raw_token: str) -> Student:
        result = await self.db.execute(
            select(Student).where(
                Student.mail_verification_token == credential_service.hash_token(raw_token)
            )
        )
        student = result.scalar_one_or_none()
        if student is None:
            logger.log_auth_event(event="verify_email", success=False, reason="Unknown verification token")
            raise InvalidVerificationTokenError()

        student.is_verified = True
        student.mail_verification_token = None
        await self.db.flush()

        logger.log_auth_event(event="verify_email", success=True, user_email=student.email)
        return student

    # ==================== Profile management ====================

    async def update_staff(self, kind: PrincipalKind, principal_id: str, name: Optional[str] = None,
                           email: Optional[str] = None, mobile: Optional[str] = None,
                           password: Optional[str] = None) -> Principal:
        principal = await self.require(kind, principal_id)
        if email:
            email = email.strip().lower()
        await self._ensure_unique(kind, email or principal.email, name, exclude_id=principal.id)

        if name:
            principal.name = name
        if email:
            principal.email = email
        if mobile:
            principal.mobile = mobile
        if password:
            principal.password = password

        await self.db.flush()
        return principal

    async def update_student_profile(self, student_id: str, changes: Dict[str, Optional[str]]) -> Student:
        student = await self.require(STUDENT, student_id)
        for field, value in changes.items():
            if value:
                setattr(student, field, value)
        await self.db.flush()
        return student

    async def update_student_by_staff(self, student_id: str, user_name: Optional[str] = None,
                                      email: Optional[str] = None, category: Optional[str] = None,
                                      university_id: Optional[str] = None,
                                      status: Optional[str] = None) -> Student:
        student = await self.require(STUDENT, student_id)
        if email:
            email = email.strip().lower()
            await self._ensure_unique(STUDENT, email, None, exclude_id=student.id)
            student.email = email
        if user_name:
            student.name = user_name
        if category:
            student.category = category

        if university_id:
            application = next(
                (app for app in student.applications if app.university_id == university_id),
                None,
            )
            if application is None:
                raise ResourceNotFoundError(
                    "University not found in student's applications",
                    resource_type="Application",
                    resource_id=university_id,
                )
            if status:
                application.status = status

        await self.db.flush()
        return student

    async def assign_counselor(self, student_id: str, counselor_id: str) -> Tuple[Student, Admin]:
        student = await self.require(STUDENT, student_id)
        counselor = await self.get(ADMIN, counselor_id)
        if counselor is None:
            raise ResourceNotFoundError("Counselor not found", resource_type="Counselor",
                                        resource_id=counselor_id)

        student.counselor_id = counselor.id
        student.counselor_name = counselor.name
        await self.db.flush()

        sent = await email_service.send_counselor_assignment_email(counselor.email, student)
        if not sent:
            logger.warning(f"[Counselor] Assignment notice not delivered to {counselor.email}")
        return student, counselor

    async def students_for_counselor(self, counselor_id: str) -> List[Student]:
        result = await self.db.execute(
            select(Student).where(Student.counselor_id == counselor_id).order_by(Student.created_at.desc())
        )
        return list(result.scalars().all())

    async def _require_university(self, university_id: str) -> University:
        university = None
        if is_valid_uuid(university_id):
            university = await self.db.get(University, university_id)
        if university is None:
            raise ResourceNotFoundError("University not found", resource_type="University",
                                        resource_id=university_id)
        return university

    async def apply_to_university(self, student: Student, university_id: str,
                                  course: Optional[str] = None) -> Student:
        university = await self._require_university(university_id)
        if any(app.university_id == university.id for app in student.applications):
            raise ValidationError("You have already applied to this university.")

        student.applications.append(
            Application(university_id=university.id, name=university.name, course=course, status=None)
        )
        await self.db.flush()
        return student

    async def toggle_wishlist(self, student: Student, university_id: str) -> Tuple[Student, bool]:
        """Add or remove a university; returns (student, added)"""
        university = await self._require_university(university_id)
        if any(uni.id == university.id for uni in student.wishlist):
            student.wishlist = [uni for uni in student.wishlist if uni.id != university.id]
            added = False
        else:
            student.wishlist.append(university)
            added = True
        await self.db.flush()
        return student, added

    # ==================== Deletion ====================

    async def delete(self, kind: PrincipalKind, principal_id: str) -> str:
        """Hard delete; a missing id is a 404 for every kind"""
        principal = await self.require(kind, principal_id)
        await self.db.delete(principal)
        await self.db.flush()
        logger.info(f"[Principal] Deleted {kind.label.lower()} {principal_id}")
        return principal_id
