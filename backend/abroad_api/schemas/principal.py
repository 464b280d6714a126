from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator,
)
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from abroad_api.core.security import (
    NUMERIC_EMAIL_MESSAGE,
    PASSWORD_POLICY_MESSAGE,
    is_numeric_email,
    password_policy_errors,
)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _id_field(**kwargs):
    # Rendered as "_id"; "id" is still accepted on input
    return Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="_id", **kwargs)


def check_registration_email(value: str) -> str:
    if is_numeric_email(value):
        raise ValueError(NUMERIC_EMAIL_MESSAGE)
    return value


def check_registration_password(value: str) -> str:
    errors = password_policy_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value


# ==================== Requests ====================

class StudentRegister(CamelModel):
    user_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    mobile: Optional[str] = None

    @field_validator("email")
    @classmethod
    def reject_numeric_email(cls, value: str) -> str:
        return check_registration_email(value)

    @field_validator("password")
    @classmethod
    def enforce_policy(cls, value: str) -> str:
        return check_registration_password(value)


class AdminRegister(CamelModel):
    admin_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    mobile: Optional[str] = None

    @field_validator("email")
    @classmethod
    def reject_numeric_email(cls, value: str) -> str:
        return check_registration_email(value)

    @field_validator("password")
    @classmethod
    def enforce_policy(cls, value: str) -> str:
        return check_registration_password(value)


class LoginRequest(BaseModel):
    # Presence is checked by the handler so the message matches the other login failures
    email: Optional[str] = None
    password: Optional[str] = None


class PasswordUpdate(BaseModel):
    password: str
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))

    @field_validator("password")
    @classmethod
    def enforce_policy(cls, value: str) -> str:
        if password_policy_errors(value):
            raise ValueError(PASSWORD_POLICY_MESSAGE)
        return value


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def enforce_policy(cls, value: str) -> str:
        if password_policy_errors(value):
            raise ValueError(PASSWORD_POLICY_MESSAGE)
        return value


class StudentProfileUpdate(CamelModel):
    """Fields a student (or staff on their behalf) may change"""
    work_exp: Optional[str] = None
    marital_status: Optional[str] = None
    dob: Optional[str] = None
    gpa: Optional[str] = None
    link: Optional[str] = None
    mobile: Optional[str] = None
    tests: Optional[str] = None


class StudentAdminUpdate(CamelModel):
    user_name: Optional[str] = None
    email: Optional[EmailStr] = None
    category: Optional[str] = None
    university_id: Optional[str] = None
    status: Optional[str] = None

    @field_validator("email")
    @classmethod
    def reject_numeric_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            check_registration_email(value)
        return value


class AdminUpdate(CamelModel):
    admin_name: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, pattern=r"^98\d{8}$", description="10-digit mobile starting with 98")
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def enforce_policy(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and password_policy_errors(value):
            raise ValueError(PASSWORD_POLICY_MESSAGE)
        return value


class AssignCounselorRequest(BaseModel):
    counselor: str = Field(..., min_length=1, description="Admin id")


class ApplyRequest(BaseModel):
    university: str = Field(..., min_length=1, description="University id")
    course: Optional[str] = None


class WishlistToggleRequest(BaseModel):
    wishlist: str = Field(..., min_length=1, description="University id")


class GoogleIdTokenRequest(BaseModel):
    credential: str


# ==================== Responses ====================

class ApplicationResponse(CamelModel):
    id: str
    name: str
    course: Optional[str] = None
    status: Optional[str] = None


class CounselorResponse(CamelModel):
    id: str
    name: Optional[str] = None


class WishlistItem(CamelModel):
    id: str
    name: str


class StudentResponse(CamelModel):
    id: str = _id_field()
    user_name: Optional[str] = None
    email: str
    role: str
    mobile: Optional[str] = None
    is_verified: bool = False
    category: Optional[str] = None
    tests: Optional[str] = None
    gpa: Optional[str] = None
    link: Optional[str] = None
    dob: Optional[str] = None
    marital_status: Optional[str] = None
    work_exp: Optional[str] = None
    counselor: Optional[CounselorResponse] = None
    university: List[ApplicationResponse] = []
    wishlist: List[str] = []
    created_at: Optional[datetime] = None

    @classmethod
    def from_student(cls, student) -> "StudentResponse":
        counselor = None
        if student.counselor_id:
            counselor = CounselorResponse(id=student.counselor_id, name=student.counselor_name)
        return cls(
            id=student.id,
            user_name=student.name,
            email=student.email,
            role=student.role,
            mobile=student.mobile,
            is_verified=bool(student.is_verified),
            category=student.category,
            tests=student.tests,
            gpa=student.gpa,
            link=student.link,
            dob=student.dob,
            marital_status=student.marital_status,
            work_exp=student.work_exp,
            counselor=counselor,
            university=[ApplicationResponse.model_validate(app) for app in student.applications],
            wishlist=[uni.id for uni in student.wishlist],
            created_at=student.created_at,
        )


class AdminResponse(CamelModel):
    """Admin and superadmin profile"""
    id: str = _id_field()
    admin_name: Optional[str] = None
    email: str
    role: str
    mobile: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_principal(cls, principal) -> "AdminResponse":
        return cls(
            id=principal.id,
            admin_name=principal.name,
            email=principal.email,
            role=principal.role,
            mobile=principal.mobile,
            created_at=principal.created_at,
        )


class StudentLoginResponse(CamelModel):
    id: str = _id_field()
    user_name: Optional[str] = None
    email: str
    role: str
    token: str
    refresh_token: str


class AdminLoginResponse(CamelModel):
    id: str = _id_field()
    admin_name: Optional[str] = None
    email: str
    role: str
    token: str
    refresh_token: str


class StudentEnvelope(BaseModel):
    success: bool = True
    message: str
    student: StudentResponse


class AdminEnvelope(BaseModel):
    success: bool = True
    message: str
    admin: AdminResponse


class SuperadminEnvelope(BaseModel):
    success: bool = True
    message: str
    superadmin: AdminResponse


class WishlistResponse(CamelModel):
    id: str = _id_field()
    user_name: Optional[str] = None
    wishlist: List[WishlistItem] = []


class AccessTokenResponse(CamelModel):
    access_token: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class DeletedResponse(BaseModel):
    success: bool = True
    message: str
    id: str


class StudentListEnvelope(CamelModel):
    success: bool = True
    count_total: int
    message: str
    students: List[StudentResponse]


class AdminListEnvelope(CamelModel):
    success: bool = True
    count_total: int
    message: str
    admins: List[AdminResponse]


class SuperadminListEnvelope(CamelModel):
    success: bool = True
    count_total: int
    message: str
    superadmins: List[AdminResponse]
