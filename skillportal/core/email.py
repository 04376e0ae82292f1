"""
Outgoing email for the Skill Portal.

Only registration codes are mailed. Delivery runs as a background task,
so failures are logged and never reach the request that scheduled it.
"""

from email.message import EmailMessage
import logging
import smtplib

from .config import settings


logger = logging.getLogger(__name__)


OTP_TEMPLATE = """\
<div style="font-family: sans-serif; padding: 2rem; border-radius: 1rem;">
    <h1 style="text-align: center;">{project}</h1>
    <p style="text-align: center;">Your verification code is <b>{code}</b></p>
    <p style="text-align: center;">It expires in {minutes} minute(s).</p>
</div>
"""


def send_email(email_to: str, subject: str, html: str) -> bool:
    """
    Send an HTML email through the configured SMTP server.

    Returns:
        bool: True if the message was handed to the server
    """
    if not settings.emails_enabled:
        logger.info(f"Email delivery disabled, skipped '{subject}' to {email_to}")
        return False

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = f"{settings.EMAILS_FROM_NAME or settings.PROJECT_NAME} <{settings.EMAILS_FROM_EMAIL}>"
    message["To"] = email_to
    message.set_content(html, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
            if settings.SMTP_TLS:
                smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send '{subject}' to {email_to}: {e}")
        return False

    logger.info(f"Sent '{subject}' to {email_to}")
    return True


def send_otp_email(email_to: str, code: str, minutes: int) -> bool:
    """Mail a registration code."""
    html = OTP_TEMPLATE.format(
        project=settings.PROJECT_NAME,
        code=code,
        minutes=minutes
    )
    return send_email(email_to, f"{settings.PROJECT_NAME} verification code", html)
