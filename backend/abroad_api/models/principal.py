from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, ForeignKey, Table, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from abroad_api.core.database import Base
from abroad_api.core.security import credential_service
from abroad_api.core.types import GUID, generate_uuid


class PrincipalRole(str, enum.Enum):
    """Role tag stored on every principal; fixed by the principal's kind"""
    STUDENT = "user"
    ADMIN = "admin"
    SUPERADMIN = "super-admin"


# Students' saved universities
wishlist_table = Table(
    "student_wishlist",
    Base.metadata,
    Column("student_id", GUID, ForeignKey("principals.id", ondelete="CASCADE"), primary_key=True),
    Column("university_id", GUID, ForeignKey("universities.id", ondelete="CASCADE"), primary_key=True),
)


class Principal(Base):
    """
    Any authenticated actor: a Student, Admin or Superadmin.

    The three kinds share one table (single-table inheritance on ``role``);
    emails are unique per kind, not across kinds.
    """
    __tablename__ = "principals"
    __table_args__ = (
        UniqueConstraint("role", "email", name="uq_principals_role_email"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    role = Column(String(20), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    mobile = Column(String(20), nullable=True)

    password_hash = Column(String(255), nullable=True)
    password_changed_at = Column(DateTime, nullable=True)

    # Current refresh token, "" when logged out
    refresh_token = Column(Text, default="", nullable=False)

    # Password reset (SHA-256 of the emailed token)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"polymorphic_on": role}

    @property
    def password(self):
        raise AttributeError("password is write-only; use check_password()")

    @password.setter
    def password(self, plaintext: str):
        # The only place a hash is computed, so it changes exactly when the password does
        self.password_hash = credential_service.hash_password(plaintext)
        self.password_changed_at = datetime.utcnow()

    def check_password(self, plaintext: str) -> bool:
        return credential_service.verify_password(plaintext, self.password_hash)

    def __repr__(self):
        return f"<{type(self).__name__} {self.email}>"


class Student(Principal):
    """Prospective student; registers publicly and must verify the email address"""

    is_verified = Column(Boolean, default=False)
    mail_verification_token = Column(String(64), nullable=True, index=True)

    google_id = Column(String(255), nullable=True, index=True)

    # Profile
    category = Column(String(100), default="none")
    tests = Column(String(255), default="none")
    gpa = Column(String(50), nullable=True)
    link = Column(Text, nullable=True)
    dob = Column(String(50), nullable=True)
    marital_status = Column(String(50), nullable=True)
    work_exp = Column(String(255), nullable=True)

    # Assigned counselor (an Admin); denormalised, not cascaded on admin deletion
    counselor_id = Column(GUID, nullable=True, index=True)
    counselor_name = Column(String(255), nullable=True)

    applications = relationship(
        "Application",
        back_populates="student",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Application.created_at",
    )
    wishlist = relationship("University", secondary=wishlist_table, lazy="selectin")

    __mapper_args__ = {"polymorphic_identity": PrincipalRole.STUDENT.value}


class Admin(Principal):
    """Staff account; created by a superadmin, acts as a student counselor"""

    __mapper_args__ = {"polymorphic_identity": PrincipalRole.ADMIN.value}


class Superadmin(Principal):
    """Top-level staff account; manages admins and other superadmins"""

    __mapper_args__ = {"polymorphic_identity": PrincipalRole.SUPERADMIN.value}


class Application(Base):
    """A student's application to a university"""
    __tablename__ = "applications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("principals.id", ondelete="CASCADE"), nullable=False, index=True)
    university_id = Column(GUID, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    course = Column(String(255), nullable=True)
    status = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="applications")

    def __repr__(self):
        return f"<Application {self.name} ({self.status})>"
