"""
MJML Email Templates
Notification e-mails use MJML for responsive, cross-client rendering.
Every interpolated value is HTML-escaped here.
"""

import html
from typing import Optional

from .config import FRONTEND_URL

# CareBook theme colors - Teal/Slate
THEME = {
    "primary": "#0f766e",
    "primary_light": "#ccfbf1",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

BRAND_NAME = "CareBook"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{html.escape(cta_url, quote=True)}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {html.escape(cta_label)}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{html.escape(title)}</mj-title>
        <mj-preview>{html.escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {html.escape(title)}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you have an account with {BRAND_NAME}.
              Manage notification preferences in your account settings.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def notification_email_template(
    title: str,
    body: str,
    user_name: Optional[str] = None,
    appointment_id: Optional[str] = None,
) -> str:
    """Generic notification e-mail; links to the appointment when there is one"""
    greeting = f"Hi {html.escape(user_name)}," if user_name else "Hello,"
    content = f"""
    <mj-text>
      {greeting}
    </mj-text>

    <mj-text>
      {html.escape(body)}
    </mj-text>
    """

    cta_url = None
    cta_label = None
    if appointment_id:
        cta_url = f"{FRONTEND_URL}/dashboard/appointments/{appointment_id}"
        cta_label = "View Appointment"

    return get_base_template(
        title=title,
        preview_text=body[:100],
        content_sections=content,
        cta_url=cta_url,
        cta_label=cta_label,
    )
