"""
Out-of-band notifications (welcome and password reset emails).

Both methods return True when the message was handed to the SMTP server and
False otherwise; they never raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html

from storeapi.core import mailer
from storeapi.core.config import Settings, get_settings


@dataclass
class EmailNotifier:
    settings: Settings = field(default_factory=get_settings)

    def send_welcome(self, email: str, name: str) -> bool:
        safe_name = html.escape(name or "")
        html_body = f"""
        <p>Hi {safe_name},</p>
        <p>Welcome! Your account has been created and you can sign in right away.</p>
        """
        return mailer.send_email(
            self.settings,
            "Welcome to the store",
            email,
            html_body,
            f"Hi {name}, welcome! Your account has been created.",
        )

    def send_password_reset(self, email: str, reset_link: str) -> bool:
        safe_link = html.escape(reset_link, quote=True)
        html_body = f"""
        <p>Hello!</p>
        <p>We received a request to reset your password. The link below is valid for one hour.</p>
        <p><a href="{safe_link}" style="background:#0ea5e9;color:#fff;padding:12px 18px;border-radius:8px;text-decoration:none;">Reset password</a></p>
        <p>If the button does not work, copy this link into your browser:</p>
        <p><a href="{safe_link}">{safe_link}</a></p>
        <p>If you did not ask for this, ignore this message.</p>
        """
        return mailer.send_email(
            self.settings,
            "Reset your password",
            email,
            html_body,
            f"Use this link to reset your password: {reset_link}",
        )
