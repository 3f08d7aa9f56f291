from __future__ import annotations

import json
import smtplib
from pathlib import Path
from typing import Any

from blulog.core.config import MailConfig
from blulog.mail.dispatcher import (
    OutboxEmailDispatcher,
    SmtpEmailDispatcher,
    build_email_dispatcher,
    render_reset_email,
)


def _mail_config(host: str = "smtp.test.local") -> MailConfig:
    return MailConfig(
        smtp_host=host,
        smtp_port=587,
        username="mailer@test.local",
        password="pw",
        sender="mailer@test.local",
    )


class _FakeSmtp:
    instances: list["_FakeSmtp"] = []

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.calls: list[tuple[str, Any]] = []
        _FakeSmtp.instances.append(self)

    def __enter__(self) -> "_FakeSmtp":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def starttls(self) -> None:
        self.calls.append(("starttls", None))

    def login(self, username: str, password: str) -> None:
        self.calls.append(("login", username))

    def sendmail(self, sender: str, recipients: list[str], message: str) -> None:
        self.calls.append(("sendmail", recipients))


class _RefusingSmtp(_FakeSmtp):
    def sendmail(self, sender: str, recipients: list[str], message: str) -> None:
        raise smtplib.SMTPRecipientsRefused({recipients[0]: (550, b"no such user")})


def test_render_reset_email_contains_link_and_lifetime() -> None:
    body = render_reset_email("https://app.test/reset-password?token=a.b.c", 900)

    assert 'href="https://app.test/reset-password?token=a.b.c"' in body
    assert "15 minutes" in body


def test_build_email_dispatcher_prefers_smtp_when_configured(tmp_path: Path) -> None:
    assert isinstance(build_email_dispatcher(_mail_config(), tmp_path), SmtpEmailDispatcher)
    assert isinstance(build_email_dispatcher(_mail_config(""), tmp_path), OutboxEmailDispatcher)


def test_smtp_dispatcher_sends_with_tls_and_login(monkeypatch) -> None:
    _FakeSmtp.instances = []
    monkeypatch.setattr(smtplib, "SMTP", _FakeSmtp)

    sent = SmtpEmailDispatcher(_mail_config()).send("jane@x.com", "Hi", "<p>hi</p>")

    assert sent is True
    smtp = _FakeSmtp.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.test.local", 587)
    assert [name for name, _ in smtp.calls] == ["starttls", "login", "sendmail"]
    assert smtp.calls[-1] == ("sendmail", ["jane@x.com"])


def test_smtp_dispatcher_reports_failure_without_raising(monkeypatch) -> None:
    monkeypatch.setattr(smtplib, "SMTP", _RefusingSmtp)

    assert SmtpEmailDispatcher(_mail_config()).send("jane@x.com", "Hi", "<p>hi</p>") is False


def test_outbox_dispatcher_writes_message_file(tmp_path: Path) -> None:
    outbox = tmp_path / "outbox"

    sent = OutboxEmailDispatcher(outbox).send("jane@x.com", "Password Reset Request", "<p>x</p>")

    files = list(outbox.glob("*.json"))
    assert sent is True
    assert len(files) == 1
    message = json.loads(files[0].read_text(encoding="utf-8"))
    assert message["to"] == "jane@x.com"
    assert message["subject"] == "Password Reset Request"
