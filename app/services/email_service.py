"""Transactional email over SMTP

Welcome, password reset and commission emails are rendered from HTML
template strings and sent with smtplib in a worker thread. Callers decide
whether a failure is fatal; every error is logged and re-raised.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


_WRAPPER = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="text-align: center; margin-bottom: 30px;">
    <h1 style="color: #1976D2; margin-bottom: 10px;">{heading}</h1>
    <p style="color: #666; font-size: 16px;">{subheading}</p>
  </div>
  {body}
</div>
"""

_BUTTON = """
<div style="text-align: center; margin-bottom: 30px;">
  <a href="{url}" style="background: #1976D2; color: white; padding: 15px 30px;
     text-decoration: none; border-radius: 5px; display: inline-block; font-weight: bold;">{label}</a>
</div>
"""

WELCOME_BODY = """
<div style="background: linear-gradient(135deg, #F4B942 0%, #E85D75 100%); padding: 30px; border-radius: 10px; margin-bottom: 30px;">
  <h2 style="color: white; margin: 0 0 15px 0;">Hello {name}!</h2>
  <p style="color: white; margin: 0; font-size: 16px; line-height: 1.5;">
    Thank you for joining our platform. You can now generate professional legal documents
    in minutes without expensive lawyer fees.
  </p>
</div>
<div style="margin-bottom: 30px;">
  <h3 style="color: #333; margin-bottom: 15px;">What you can do:</h3>
  <ul style="color: #666; line-height: 1.6;">
    <li>Generate professional legal letters and documents</li>
    <li>Choose from attorney-reviewed templates</li>
    <li>Download documents in PDF format</li>
    <li>Manage your subscriptions and usage</li>
  </ul>
</div>
{button}
<div style="border-top: 1px solid #eee; padding-top: 20px; text-align: center;">
  <p style="color: #888; font-size: 14px; margin: 0;">
    Need help? Contact us at <a href="mailto:{support}" style="color: #1976D2;">{support}</a>
  </p>
</div>
"""

RESET_BODY = """
<div style="background: #f8f9fa; padding: 30px; border-radius: 10px; margin-bottom: 30px; border-left: 5px solid #1976D2;">
  <h2 style="color: #333; margin: 0 0 15px 0;">Hello {name},</h2>
  <p style="color: #666; margin: 0 0 20px 0; font-size: 16px; line-height: 1.5;">
    We received a request to reset your password for your Talk-to-My-Lawyer account.
    If you didn't make this request, you can safely ignore this email.
  </p>
  <p style="color: #666; margin: 0; font-size: 16px; line-height: 1.5;">
    To reset your password, click the button below. This link will expire in {minutes} minutes for security reasons.
  </p>
</div>
{button}
<div style="background: #fff3cd; border: 1px solid #ffeaa7; border-radius: 5px; padding: 15px; margin-bottom: 30px;">
  <p style="color: #856404; margin: 0; font-size: 14px;">
    <strong>Security Note:</strong> If you didn't request this password reset,
    please contact our support team immediately at {support}
  </p>
</div>
<div style="border-top: 1px solid #eee; padding-top: 20px; text-align: center;">
  <p style="color: #888; font-size: 12px; margin: 0;">
    If you can't click the button above, copy and paste this URL into your browser:
  </p>
  <p style="color: #888; font-size: 12px; word-break: break-all; margin: 10px 0 0 0;">{url}</p>
</div>
"""

COMMISSION_BODY = """
<div style="background: linear-gradient(135deg, #28a745 0%, #20c997 100%); padding: 30px; border-radius: 10px; margin-bottom: 30px;">
  <h2 style="color: white; margin: 0 0 15px 0;">Congratulations {name}!</h2>
  <p style="color: white; margin: 0 0 15px 0; font-size: 18px;">
    You've earned a commission of <strong>${commission}</strong>
  </p>
  <p style="color: white; margin: 0; font-size: 16px;">
    A user ({user_email}) subscribed using your discount code.
  </p>
</div>
{button}
"""


class EmailService:
    """Sends HTML email through the configured SMTP relay"""

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        if not settings.SMTP_HOST:
            raise RuntimeError("SMTP_HOST is not configured")
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, html: str) -> None:
        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._deliver, message)
        except Exception as e:
            logger.error(f"Error sending '{subject}' to {to}: {e}")
            raise
        logger.info(f"Email '{subject}' sent to {to}")

    async def send_welcome_email(self, email: str, name: str) -> None:
        body = WELCOME_BODY.format(
            name=escape(name),
            support=escape(settings.SUPPORT_EMAIL),
            button=_BUTTON.format(url=escape(settings.CLIENT_URL), label="Get Started Now"),
        )
        html = _WRAPPER.format(
            heading="Welcome to Talk-to-My-Lawyer!",
            subheading="Professional Legal Document Generation Platform",
            body=body,
        )
        await self.send(email, "Welcome to Talk-to-My-Lawyer!", html)

    def reset_url(self, reset_token: str) -> str:
        return f"{settings.CLIENT_URL}/reset-password?token={reset_token}"

    async def send_password_reset_email(self, email: str, name: str, reset_token: str) -> None:
        url = escape(self.reset_url(reset_token))
        body = RESET_BODY.format(
            name=escape(name),
            minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES,
            support=escape(settings.SUPPORT_EMAIL),
            url=url,
            button=_BUTTON.format(url=url, label="Reset My Password"),
        )
        html = _WRAPPER.format(
            heading="Password Reset Request",
            subheading="Talk-to-My-Lawyer Platform",
            body=body,
        )
        await self.send(email, "Password Reset Request - Talk-to-My-Lawyer", html)

    async def send_commission_notification(
        self,
        employee_email: str,
        employee_name: str,
        commission: float,
        user_email: Optional[str],
    ) -> None:
        body = COMMISSION_BODY.format(
            name=escape(employee_name),
            commission=f"{commission:.2f}",
            user_email=escape(user_email or "a customer"),
            button=_BUTTON.format(url=escape(settings.CLIENT_URL), label="View Dashboard"),
        )
        html = _WRAPPER.format(
            heading="Commission Earned!",
            subheading="Talk-to-My-Lawyer Platform",
            body=body,
        )
        await self.send(employee_email, "New Commission Earned - Talk-to-My-Lawyer", html)


# single instance exported for app usage
email_service = EmailService()
