# /app/services/email_service.py

"""
Outgoing e-mail over SMTP (aiosmtplib), rendered with Jinja2 templates.

When SMTP is not configured the service logs and reports failure instead of
raising, so the password-reset flow keeps its uniform response.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

import aiosmtplib
from jinja2 import Template

from app.core.config import settings

logger = logging.getLogger(__name__)

OTP_EMAIL_SUBJECT = "Your password reset code"

OTP_EMAIL_TEXT = Template(
    "Hello {{ name }},\n\n"
    "Your password reset code is: {{ otp }}\n\n"
    "The code expires in {{ minutes }} minutes. If you did not request a reset, "
    "you can ignore this e-mail.\n\n{{ sender }}\n"
)

OTP_EMAIL_HTML = Template(
    "<p>Hello {{ name }},</p>"
    "<p>Your password reset code is:</p>"
    "<p style=\"font-size:28px;font-weight:bold;letter-spacing:6px\">{{ otp }}</p>"
    "<p>The code expires in {{ minutes }} minutes. If you did not request a reset, "
    "you can ignore this e-mail.</p>"
    "<p>{{ sender }}</p>"
)


async def send_email(to_email: str, subject: str, html_content: str,
                     text_content: Optional[str] = None) -> Dict[str, Any]:
    """
    Sends a multipart e-mail.

    Returns a dict with a `success` flag and, on failure, an `error` message.
    """
    if not settings.email_configured:
        logger.warning("E-mail not configured; dropping message '%s' to %s", subject, to_email)
        return {"success": False, "error": "Email service not configured"}

    message = MIMEMultipart("alternative")
    message["From"] = f"{settings.from_name} <{settings.from_email}>"
    message["To"] = to_email
    message["Subject"] = subject
    if text_content:
        message.attach(MIMEText(text_content, "plain", "utf-8"))
    message.attach(MIMEText(html_content, "html", "utf-8"))

    try:
        async with aiosmtplib.SMTP(
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            start_tls=settings.smtp_use_tls,
        ) as smtp:
            if settings.smtp_username and settings.smtp_password:
                await smtp.login(settings.smtp_username, settings.smtp_password)
            await smtp.send_message(message)
    except Exception as e:
        logger.error("Failed to send e-mail to %s: %s", to_email, e, exc_info=True)
        return {"success": False, "error": str(e)}

    logger.info("E-mail sent to %s: %s", to_email, subject)
    return {"success": True}


async def send_otp_email(to_email: str, otp: str, name: str) -> bool:
    context = {
        "name": name,
        "otp": otp,
        "minutes": settings.otp_expiry_minutes,
        "sender": settings.from_name,
    }
    result = await send_email(
        to_email,
        OTP_EMAIL_SUBJECT,
        html_content=OTP_EMAIL_HTML.render(**context),
        text_content=OTP_EMAIL_TEXT.render(**context),
    )
    return result["success"]
