"""Public contact form and the session check used by the site's header"""
from fastapi import APIRouter, Depends, Request

from abroad_api.core.exceptions import ValidationError
from abroad_api.core.logging_config import logger
from abroad_api.core.rate_limiter import strict_rate_limit
from abroad_api.models import Student
from abroad_api.modules.auth.dependencies import SessionContext, get_current_session
from abroad_api.schemas.content import InquiryRequest
from abroad_api.schemas.principal import AdminResponse, StudentResponse
from abroad_api.services.email_service import email_service

router = APIRouter()


@router.post("/sendenquiry")
@strict_rate_limit()
async def send_enquiry(request: Request, data: InquiryRequest):
    """Forward the contact form to the consultancy inbox (rate limited: 3/min)"""
    if not data.email:
        raise ValidationError("No sender email provided!", field="email")

    sent = await email_service.send_inquiry_email(data.email, data.fullname, data.number, data.text)
    if not sent:
        logger.warning(f"[Inquiry] Inquiry from {data.email} was not delivered")
    return {"success": True, "message": "Email sent successfully"}


@router.get("/checkuser")
async def check_user(context: SessionContext = Depends(get_current_session)):
    """Report who the bearer token belongs to"""
    principal = context.principal
    if isinstance(principal, Student):
        user = StudentResponse.from_student(principal)
    else:
        user = AdminResponse.from_principal(principal)
    return {
        "success": True,
        "role": context.role,
        "user": user.model_dump(mode="json", by_alias=True),
    }
