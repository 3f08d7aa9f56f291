"""Outbound email dispatch for account notifications."""

from __future__ import annotations

import json
import logging
import smtplib
import uuid
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from pathlib import Path
from typing import Protocol

from blulog.core.config import MailConfig

LOGGER = logging.getLogger(__name__)


class EmailDispatcher(Protocol):
    """Sends a single HTML email; never raises on delivery failure."""

    def send(self, to: str, subject: str, html_body: str) -> bool:
        """Send the message and report whether it was accepted."""


class SmtpEmailDispatcher:
    """Deliver mail through an SMTP relay."""

    def __init__(self, config: MailConfig, *, timeout: float = 10.0) -> None:
        self._config = config
        self._timeout = timeout

    def _build_message(self, to: str, subject: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._config.sender
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def send(self, to: str, subject: str, html_body: str) -> bool:
        msg = self._build_message(to, subject, html_body)
        try:
            with smtplib.SMTP(
                self._config.smtp_host, self._config.smtp_port, timeout=self._timeout
            ) as smtp:
                if self._config.use_tls:
                    smtp.starttls()
                if self._config.username:
                    smtp.login(self._config.username, self._config.password)
                smtp.sendmail(self._config.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError):
            LOGGER.exception("email_send_failed")
            return False
        LOGGER.info("email_sent")
        return True


class OutboxEmailDispatcher:
    """Write messages as JSON files instead of sending them.

    Used for local development when no SMTP relay is configured.
    """

    def __init__(self, outbox_dir: Path) -> None:
        self._outbox_dir = outbox_dir
        self._outbox_dir.mkdir(parents=True, exist_ok=True)

    def send(self, to: str, subject: str, html_body: str) -> bool:
        message = {
            "to": to,
            "subject": subject,
            "html": html_body,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        path = self._outbox_dir / f"{uuid.uuid4().hex}.json"
        try:
            path.write_text(json.dumps(message, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError:
            LOGGER.exception("email_outbox_write_failed")
            return False
        LOGGER.info("email_written_to_outbox")
        return True


def build_email_dispatcher(config: MailConfig, app_root: Path) -> EmailDispatcher:
    """Pick SMTP delivery when a relay host is configured, else the file outbox."""
    if config.smtp_host:
        return SmtpEmailDispatcher(config)
    return OutboxEmailDispatcher(app_root / "runtime" / "outbox")


def render_reset_email(reset_link: str, ttl_seconds: int) -> str:
    """Build the HTML body of the password reset message."""
    minutes = max(1, ttl_seconds // 60)
    return (
        f'<p>Click <a href="{escape(reset_link, quote=True)}">here</a> to reset your '
        f"password. This link will expire in {minutes} minutes.</p>"
    )
