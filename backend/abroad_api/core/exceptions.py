"""
Custom Exceptions for the College Abroad API
============================================

Services raise these instead of HTTPException so they stay usable outside a
request; the handlers registered in ``abroad_api.main`` turn them into JSON
responses carrying a ``message`` field and the error's status code.

Usage:
    from abroad_api.core.exceptions import PrincipalNotFoundError

    if not student:
        raise PrincipalNotFoundError("Student not found")
"""

from typing import Optional, Any, Dict, List


class AbroadError(Exception):
    """Base exception for all API errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "message": self.message,
            "code": self.code,
        }
        if self.details:
            body["details"] = self.details
        return body


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(AbroadError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message, code="VALIDATION_ERROR", details=details)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message, "code": self.code}
        if "errors" in self.details:
            body["errors"] = self.details["errors"]
        elif "field" in self.details:
            body["errors"] = [{"field": self.details["field"], "message": self.message}]
        return body


class InvalidResetTokenError(ValidationError):
    """Reset token unknown, already used or expired (deliberately indistinguishable)"""

    def __init__(self):
        super().__init__("Token expired or invalid!")
        self.code = "INVALID_RESET_TOKEN"


class InvalidVerificationTokenError(ValidationError):
    """Email verification token unknown or already consumed"""

    def __init__(self):
        super().__init__("Invalid or expired verification token.")
        self.code = "INVALID_VERIFICATION_TOKEN"


class EmailNotVerifiedError(ValidationError):
    """Student tried to log in before confirming the email address"""

    def __init__(self):
        super().__init__("Verify email!")
        self.code = "EMAIL_NOT_VERIFIED"


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(AbroadError):
    """Authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", code: str = "AUTH_FAILED"):
        super().__init__(message, code=code)


class MissingCredentialsError(AuthenticationError):
    """No usable Bearer credential on the request"""

    def __init__(self):
        super().__init__("Authorization header is missing", code="MISSING_CREDENTIALS")


class InvalidTokenError(AuthenticationError):
    """Signature, expiry or token type check failed"""

    def __init__(self, message: str = "Token is invalid or expired"):
        super().__init__(message, code="INVALID_TOKEN")


class UnknownPrincipalError(AuthenticationError):
    """Token verified but no principal of any kind owns its subject"""

    def __init__(self):
        super().__init__("User not found", code="PRINCIPAL_NOT_FOUND")


class InvalidCredentialsError(AuthenticationError):
    """Password check failed at login"""

    def __init__(self):
        super().__init__("Invalid Credentials!", code="INVALID_CREDENTIALS")


class AuthorizationError(AbroadError):
    """Principal not allowed to perform this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404/409-type)
# ============================================

class ResourceNotFoundError(AbroadError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, message: str, resource_type: str = "Resource", resource_id: Optional[str] = None):
        details: Dict[str, Any] = {"resource_type": resource_type}
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message, code=f"{resource_type.upper()}_NOT_FOUND", details=details)


class PrincipalNotFoundError(ResourceNotFoundError):
    """Student, admin or superadmin lookup came back empty"""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        super().__init__(message, resource_type="Principal", resource_id=resource_id)


class ConflictError(AbroadError):
    """A unique field is already taken"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, code="CONFLICT", details={"field": field} if field else None)


# ============================================
# Integration Errors
# ============================================

class ServiceUnavailableError(AbroadError):
    """An optional integration (OAuth, mail) is not configured"""

    status_code = 503

    def __init__(self, message: str):
        super().__init__(message, code="SERVICE_UNAVAILABLE")


class OAuthError(AuthenticationError):
    """Google sign-in could not be completed"""

    def __init__(self, message: str = "Google authentication failed"):
        super().__init__(message, code="OAUTH_FAILED")
