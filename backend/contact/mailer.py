# contact/mailer.py
"""
Outbound email for the contact form.

Both transports return a `SendResult` instead of raising, so the caller
decides what the visitor sees. Transport details (server replies, credentials)
only ever go to the log.
"""
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import requests

from contact.settings import ContactSettings

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Email service is not configured on the server."


@dataclass(frozen=True)
class SendResult:
    ok: bool
    error: str = ""

    @classmethod
    def success(cls) -> "SendResult":
        return cls(True)

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(False, error)


class Mailer(ABC):
    timeout: float = 10.0

    @abstractmethod
    def send(
        self,
        subject: str,
        body: str,
        from_addr: str,
        to_addr: str,
        reply_to: Optional[str] = None,
    ) -> SendResult:
        """Deliver one plain-text message; report failure in the result, never raise."""


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        *,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, subject, body, from_addr, to_addr, reply_to=None) -> SendResult:
        if not all([self.host, self.port, self.user, self.password, from_addr, to_addr]):
            logger.error("[mailer] SMTP settings incomplete; not sending")
            return SendResult.failure(NOT_CONFIGURED)

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"Contact Form <{from_addr}>"
        msg["To"] = to_addr
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.set_content(body)

        try:
            if self.use_tls:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.user, self.password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                    server.login(self.user, self.password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("[mailer] SMTP send via %s:%s failed: %r", self.host, self.port, e)
            return SendResult.failure(f"smtp: {e.__class__.__name__}")

        logger.info("[mailer] SMTP message sent to %s", to_addr)
        return SendResult.success()


class HttpApiMailer(Mailer):
    """Managed email API that accepts a JSON message with a bearer key."""

    def __init__(self, url: Optional[str], api_key: Optional[str], *, timeout: float = 10.0):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def send(self, subject, body, from_addr, to_addr, reply_to=None) -> SendResult:
        if not all([self.url, self.api_key, from_addr, to_addr]):
            logger.error("[mailer] email API settings incomplete; not sending")
            return SendResult.failure(NOT_CONFIGURED)

        payload = {
            "from": from_addr,
            "to": [to_addr],
            "subject": subject,
            "text": body,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        try:
            resp = requests.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("[mailer] email API request failed: %r", e)
            return SendResult.failure(f"api: {e.__class__.__name__}")

        if not resp.ok:
            logger.error("[mailer] email API rejected message: %s %s", resp.status_code, resp.text[:500])
            return SendResult.failure(f"api: HTTP {resp.status_code}")

        logger.info("[mailer] email API accepted message for %s", to_addr)
        return SendResult.success()


def build_mailer(settings: ContactSettings) -> Mailer:
    transport = (settings.email_transport or "smtp").lower()
    if transport == "api":
        return HttpApiMailer(settings.email_api_url, settings.email_api_key, timeout=settings.send_timeout)
    if transport != "smtp":
        logger.warning("[mailer] unknown EMAIL_TRANSPORT %r; falling back to smtp", transport)
    return SmtpMailer(
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.send_timeout,
    )
