"""
Email Service for the College Abroad API
========================================
Handles all outgoing mail:
- Email verification on student signup (and on unverified login attempts)
- Password reset links
- Counselor assignment notices
- Contact-form inquiries from the public site

Supports both SMTP and SendGrid. Sending never raises: failures are logged
and reported through the boolean return value.
"""

import asyncio
import html
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import aiosmtplib
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, ReplyTo, To

from abroad_api.core.config import settings
from abroad_api.core.logging_config import logger


def _wrap_html(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2>{title}</h2>
            {body}
            <p style="font-size: 12px; color: #6b7280;">{settings.EMAIL_FROM_NAME}</p>
        </div>
    </body>
    </html>
    """


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if self.use_sendgrid:
            return bool(self.sendgrid_api_key)
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] Email service not configured, skipping '{subject}' to {to_email}")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content, reply_to)
        return await self._send_via_smtp(to_email, subject, html_content, text_content, reply_to)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )
            if text_content:
                message.add_content(Content("text/plain", text_content))
            if reply_to:
                message.reply_to = ReplyTo(reply_to)

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid's client is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in (200, 201, 202):
                logger.info(f"[Email/SendGrid] Sent '{subject}' to {to_email}")
                return True

            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject
            if reply_to:
                message["Reply-To"] = reply_to

            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent '{subject}' to {to_email}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def send_verification_email(self, to_email: str, user_name: Optional[str], token: str) -> bool:
        """Send the one-shot email verification link to a student"""
        link = settings.backend_link(f"/user/verify-email/{token}")
        greeting = html.escape(user_name or "there")
        html_content = _wrap_html(
            "Verify your email",
            f"<p>Hi {greeting},</p>"
            f"<p>Please verify your email address to activate your account.</p>"
            f'<p><a href="{link}">Verify Email Address</a></p>'
            f"<p>Or open this link: {link}</p>",
        )
        text_content = f"Hi {user_name or 'there'},\n\nVerify your email address: {link}\n"
        return await self.send_email(to_email, "Verify your email", html_content, text_content)

    async def send_password_reset_email(self, to_email: str, user_name: Optional[str], token: str) -> bool:
        """Send the password reset link (valid for PASSWORD_RESET_EXPIRE_MINUTES)"""
        link = settings.frontend_link(f"reset-password/{token}")
        minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES
        greeting = html.escape(user_name or "there")
        html_content = _wrap_html(
            "Reset your password",
            f"<p>Hi {greeting},</p>"
            f"<p>Follow this link to reset your password. It is valid for {minutes} minutes.</p>"
            f'<p><a href="{link}">Reset Password</a></p>',
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Reset your password (valid for {minutes} minutes): {link}\n"
        )
        return await self.send_email(to_email, "Forgot Password Link", html_content, text_content)

    async def send_counselor_assignment_email(self, to_email: str, student) -> bool:
        """Tell an admin they now counsel a student"""
        name = html.escape(student.name or "")
        mobile = html.escape(student.mobile or "-")
        email = html.escape(student.email)
        html_content = _wrap_html(
            "Counselor Assigned",
            f"<p>You have been assigned as a counselor for {name}.</p>"
            f"<p><strong>Student Details:</strong></p>"
            f"<p>Name: {name}</p>"
            f"<p>Phone: {mobile}</p>"
            f"<p>Email: {email}</p>",
        )
        return await self.send_email(to_email, "New Student Assignment", html_content)

    async def send_inquiry_email(self, sender_email: str, fullname: Optional[str],
                                 number: Optional[str], text: Optional[str]) -> bool:
        """Forward a contact-form inquiry to the consultancy inbox"""
        name = html.escape(fullname or "-")
        email = html.escape(sender_email)
        phone = html.escape(number or "-")
        message = html.escape(text or "")
        html_content = _wrap_html(
            "New Inquiry",
            f"<p><strong>Name:</strong> {name}</p>"
            f"<p><strong>Email:</strong> {email}</p>"
            f"<p><strong>Phone:</strong> {phone}</p>"
            f"<p><strong>Message:</strong></p><p>{message}</p>",
        )
        return await self.send_email(
            settings.INQUIRY_RECIPIENT,
            f"Inquiry from {fullname or sender_email}",
            html_content,
            reply_to=sender_email,
        )


# Singleton instance
email_service = EmailService()
