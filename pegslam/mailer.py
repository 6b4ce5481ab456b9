"""
Transactional email via the Resend HTTP API.

Without ``RESEND_API_KEY`` the mailer logs what it would have sent and
returns False, so local development and tests never touch the network.
"""

from __future__ import annotations

import html
from typing import Any, Mapping

import requests

from pegslam.config import Settings, get_settings
from pegslam.exceptions import EmailDeliveryError
from pegslam.logging_config import LogLevel, get_logger, log_error, log_event

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_LAYOUT = """<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"></head>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
      <div style="background: #1e5a3a; color: white; padding: 24px; text-align: center;">
        <h1 style="margin: 0;">{title}</h1>
      </div>
      <div style="background: white; padding: 24px;">
        {body}
      </div>
      <p style="font-size: 12px; color: #666;">{footer}</p>
    </div>
  </body>
</html>
"""

_AUTOMATED_FOOTER = "This is an automated message, please do not reply to this email."


def _button(url: str, label: str) -> str:
    return (
        f'<p style="text-align: center;"><a href="{html.escape(url)}" '
        f'style="background: #2d7a4f; color: white; padding: 12px 24px; text-decoration: none;">{label}</a></p>'
        f'<p>Or copy this link into your browser:<br>{html.escape(url)}</p>'
    )


class Mailer:
    """Sends Peg Slam's account and contact emails."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.settings.resend_api_key)

    def send(
        self,
        *,
        to: str,
        subject: str,
        html_body: str,
        reply_to: str | None = None,
        kind: str = "generic",
    ) -> bool:
        """
        Send one email.

        Returns False when no API key is configured. Raises EmailDeliveryError
        when Resend rejects the request or cannot be reached.
        """
        if not self.enabled:
            log_event("email_skipped", level=LogLevel.WARNING, kind=kind, reason="RESEND_API_KEY not set")
            return False

        payload: dict[str, Any] = {
            "from": self.settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        try:
            response = self.session.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log_error("email_delivery_failed", exc, kind=kind)
            raise EmailDeliveryError(detail=str(exc)) from exc

        if response.status_code >= 400:
            log_error("email_delivery_failed", kind=kind, status_code=response.status_code)
            raise EmailDeliveryError(status_code=response.status_code, detail=response.text[:500])

        log_event("email_sent", kind=kind, status_code=response.status_code)
        return True

    def send_password_reset(self, to: str, token: str, name: str | None = None) -> bool:
        reset_url = f"{self.settings.app_url}/reset-password?token={token}"
        greeting = f"Hi {html.escape(name)}," if name else "Hello,"
        body = (
            f"<p>{greeting}</p>"
            "<p>We received a request to reset your Peg Slam password.</p>"
            f"{_button(reset_url, 'Reset Password')}"
            "<p>This link expires in 1 hour. If you didn't ask for a reset, you can ignore this email.</p>"
        )
        return self.send(
            to=to,
            subject="Password Reset Request - Peg Slam",
            html_body=_LAYOUT.format(title="Reset Your Password", body=body, footer=_AUTOMATED_FOOTER),
            kind="password_reset",
        )

    def send_verification(self, to: str, token: str, first_name: str | None = None) -> bool:
        verify_url = f"{self.settings.app_url}/verify-email?token={token}"
        greeting = f"Hi {html.escape(first_name)}," if first_name else "Hello,"
        body = (
            f"<p>{greeting}</p>"
            "<p>Thanks for registering with Peg Slam. Please confirm your email address.</p>"
            f"{_button(verify_url, 'Verify Email')}"
            "<p>This link expires in 24 hours.</p>"
        )
        return self.send(
            to=to,
            subject="Verify Your Email - Peg Slam",
            html_body=_LAYOUT.format(title="Welcome to Peg Slam", body=body, footer=_AUTOMATED_FOOTER),
            kind="verification",
        )

    def send_contact(self, form: Mapping[str, str]) -> bool:
        rows = "".join(
            f"<p><strong>{label}:</strong> {html.escape(str(value))}</p>"
            for label, value in (
                ("Name", f"{form['firstName']} {form['lastName']}"),
                ("Email", form["email"]),
                ("Mobile", form["mobileNumber"]),
            )
        )
        comment = html.escape(form["comment"]).replace("\n", "<br>")
        body = f"{rows}<div style=\"border-left: 4px solid #2d7a4f; padding-left: 12px;\">{comment}</div>"
        return self.send(
            to=self.settings.contact_email,
            subject=f"New Contact Form Submission from {form['firstName']} {form['lastName']}",
            html_body=_LAYOUT.format(title="New Contact Form Submission", body=body, footer=""),
            reply_to=form["email"],
            kind="contact",
        )
