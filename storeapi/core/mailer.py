"""
SMTP adapter used by the notifier.

send_email reports delivery as a bool: any failure (missing configuration,
network, authentication, an address the server cannot encode) is logged with
its reason and turned into False so callers never see an exception.
"""

from contextlib import contextmanager
from email.message import EmailMessage
import logging
import smtplib
import ssl

from .config import Settings

logger = logging.getLogger(__name__)

SMTPS_PORT = 465


def smtp_configured(settings: Settings) -> bool:
    return bool(settings.smtp_host and settings.smtp_port and settings.smtp_user and settings.smtp_password and settings.smtp_from)


def build_message(settings: Settings, subject: str, to_email: str, html_body: str, text_body: str | None = None) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    msg.set_content(text_body or html_body)
    msg.add_alternative(html_body, subtype="html")
    return msg


@contextmanager
def _smtp_connection(settings: Settings):
    """Yield an authenticated connection: implicit TLS on 465, STARTTLS elsewhere."""
    context = ssl.create_default_context()
    if settings.smtp_port == SMTPS_PORT:
        server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context)
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)
    with server:
        if settings.smtp_port != SMTPS_PORT:
            server.ehlo()
            server.starttls(context=context)
        server.login(settings.smtp_user, settings.smtp_password)
        yield server


def send_email(settings: Settings, subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    if not smtp_configured(settings):
        logger.warning("SMTP not configured; skipping email %r to %s", subject, to_email)
        return False
    try:
        msg = build_message(settings, subject, to_email, html_body, text_body)
        with _smtp_connection(settings) as server:
            # send_message negotiates SMTPUTF8 for non-ASCII addresses when the server offers it
            server.send_message(msg)
    except Exception as exc:
        logger.error("Email %r to %s not delivered (%s: %s)", subject, to_email, type(exc).__name__, exc)
        return False
    return True
