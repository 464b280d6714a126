from abroad_api.services.email_service import EmailService, email_service
from abroad_api.services.principal_service import PrincipalService, PrincipalKind
from abroad_api.services.content_service import ContentService

__all__ = [
    "EmailService",
    "email_service",
    "PrincipalService",
    "PrincipalKind",
    "ContentService",
]
