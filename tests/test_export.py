from __future__ import annotations

import smtplib

from game_chatbot.config import MailConfig
from game_chatbot.export import SUBJECT, SmtpTranscriptExporter


class RecordingSMTP:
    instances: list["RecordingSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[tuple] = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, message):
        self.calls.append(("send", message))


def test_send_uses_starttls_and_login(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    exporter = SmtpTranscriptExporter(MailConfig(enable=True, type="gmail", email="bot@example.com", password="pw"))

    exporter.send("[Player]: hi\n[AI]: hello\n", "steve@example.com")

    smtp = RecordingSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.gmail.com", 587)
    assert smtp.calls[0] == ("starttls",)
    assert smtp.calls[1] == ("login", "bot@example.com", "pw")
    message = smtp.calls[2][1]
    assert message["To"] == "steve@example.com"
    assert message["Subject"] == SUBJECT
    assert message.get_content() == "[Player]: hi\n[AI]: hello\n"


def test_missing_credentials_skip_sending(monkeypatch, caplog):
    RecordingSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    exporter = SmtpTranscriptExporter(MailConfig(enable=True, email="bot@example.com", password=None))

    with caplog.at_level("WARNING"):
        exporter.send("text", "steve@example.com")

    assert RecordingSMTP.instances == []
    assert "Missing email credentials" in caplog.text


def test_unknown_mail_type_defaults_to_gmail(caplog):
    with caplog.at_level("WARNING"):
        exporter = SmtpTranscriptExporter(MailConfig(type="yahoo"))
    assert exporter.host == "smtp.gmail.com"
    assert "Unknown mail.type" in caplog.text


def test_smtp_failure_is_logged_not_raised(monkeypatch, caplog):
    def refuse(*_args, **_kwargs):
        raise ConnectionRefusedError("no route")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    exporter = SmtpTranscriptExporter(MailConfig(enable=True, email="bot@example.com", password="pw"))

    with caplog.at_level("ERROR"):
        exporter.send("text", "steve@example.com")

    assert "Failed to send email" in caplog.text
