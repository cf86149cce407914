from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from .config import MailConfig

SMTP_HOSTS = {
    "gmail": "smtp.gmail.com",
    "outlook": "smtp.office365.com",
}
SMTP_PORT = 587
SUBJECT = "Player ChatBot Session Data"


class SmtpTranscriptExporter:
    """Mails a finished transcript through Gmail or Outlook SMTP (STARTTLS)."""

    def __init__(self, mail: MailConfig, *, timeout: float = 15.0, logger: logging.Logger | None = None):
        self._mail = mail
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)
        host = SMTP_HOSTS.get(mail.type)
        if host is None:
            self._logger.warning("Unknown mail.type: %s. Defaulting to Gmail.", mail.type)
            host = SMTP_HOSTS["gmail"]
        self.host = host

    def build_message(self, text: str, address: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._mail.email or ""
        message["To"] = address
        message["Subject"] = SUBJECT
        message.set_content(text)
        return message

    def send(self, text: str, address: str) -> None:
        if not self._mail.email or not self._mail.password:
            self._logger.warning("Missing email credentials in chatbot config.")
            return
        message = self.build_message(text, address)
        try:
            with smtplib.SMTP(self.host, SMTP_PORT, timeout=self._timeout) as smtp:
                smtp.starttls()
                smtp.login(self._mail.email, self._mail.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            self._logger.error("Failed to send email: %s", exc)
