"""
Email Service using Resend
Compiles MJML notification templates and sends them through the Resend API
"""

import logging
from typing import Optional

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import notification_email_template
from .services.errors import DeliveryError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise DeliveryError("email", f"Failed to compile MJML template: {e}") from e

    # Depending on the mjml version the result is a dict or an object with .html
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return getattr(result, "html", str(result))


class ResendEmailSender:
    """E-mail channel: one message per queue item, addressed to item.user_email"""

    def __init__(self, api_key: Optional[str] = RESEND_API_KEY, from_address: str = EMAIL_FROM_ADDRESS):
        self.api_key = api_key
        self.from_address = from_address

    async def send(self, item) -> tuple[bool, Optional[str]]:
        if not item.user_email:
            logger.debug(f"⚠️ No email address for notification {item.id}")
            return False, "No email address"

        if not self.api_key:
            logger.error("❌ No email service configured - RESEND_API_KEY missing")
            raise DeliveryError("email", "Email service not configured")

        html_content = compile_mjml_to_html(
            notification_email_template(
                title=item.title,
                body=item.body,
                user_name=item.user_name,
                appointment_id=item.appointment_id,
            )
        )

        try:
            logger.info(f"📧 Sending {item.type} email via Resend to: {item.user_email}")
            resend.api_key = self.api_key
            response = resend.Emails.send(
                {
                    "from": self.from_address,
                    "to": [item.user_email],
                    "subject": item.title,
                    "html": html_content,
                }
            )
        except Exception as e:
            logger.error(f"❌ Email send error to {item.user_email}: {e}")
            return False, str(e)

        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return True, None
