"""Outbound email: send(to, subject, html) -> SendResult. Senders never raise."""

from __future__ import annotations

import logging
import smtplib
import ssl
import threading
import time
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

import requests

from roombook.core.config import Settings

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
GRAPH_API_URL = "https://graph.microsoft.com/v1.0"
TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"


@dataclass(frozen=True)
class SendResult:
    success: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "SendResult":
        return cls(success=True)

    @classmethod
    def failed(cls, reason: str) -> "SendResult":
        return cls(success=False, reason=reason)


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> SendResult:
        ...


class DisabledMailer:
    """Used when no mail backend is configured; every send is reported as failed."""

    def send(self, to: str, subject: str, html: str) -> SendResult:
        logger.warning(f"Email to {to} skipped: mail backend is not configured")
        return SendResult.failed("Email service is not configured.")


class ConsoleMailer:
    """Development sender that only logs the message."""

    def send(self, to: str, subject: str, html: str) -> SendResult:
        logger.info(f"[mail] to={to} subject={subject!r}\n{html}")
        return SendResult.ok()


class GraphMailer:
    """Sends through the Microsoft Graph sendMail endpoint with app-only credentials."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        sender: str,
        timeout: int = 10,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.sender = sender
        self.timeout = timeout
        self.http = http or requests.Session()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._lock = threading.Lock()

    def _access_token(self) -> str:
        with self._lock:
            # Refresh a minute early so a token never expires mid-request
            if self._token and time.monotonic() < self._token_expires_at - 60:
                return self._token
            response = self.http.post(
                TOKEN_URL.format(tenant=self.tenant_id),
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": GRAPH_SCOPE,
                    "grant_type": "client_credentials",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
            self._token = payload["access_token"]
            self._token_expires_at = time.monotonic() + int(payload.get("expires_in", 3600))
            return self._token

    def send(self, to: str, subject: str, html: str) -> SendResult:
        message = {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html},
                "toRecipients": [{"emailAddress": {"address": to}}],
            },
            "saveToSentItems": True,
        }
        try:
            token = self._access_token()
            response = self.http.post(
                f"{GRAPH_API_URL}/users/{self.sender}/sendMail",
                json=message,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"Error sending email to {to} via Microsoft Graph: {e}")
            return SendResult.failed("Failed to send email notification.")
        logger.info(f"Email sent to {to}")
        return SendResult.ok()


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = True,
        timeout: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.user = user
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
        client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        client.starttls(context=context)
        return client

    def send(self, to: str, subject: str, html: str) -> SendResult:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        try:
            with self._connect() as client:
                if self.user:
                    client.login(self.user, self.password or "")
                client.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to} via SMTP: {e}")
            return SendResult.failed("Failed to send email notification.")
        logger.info(f"Email sent to {to}")
        return SendResult.ok()


def build_mailer(settings: Settings) -> Mailer:
    """Pick the sender named by MAIL_BACKEND, falling back to disabled when incomplete."""
    backend = settings.MAIL_BACKEND
    if backend == "console":
        return ConsoleMailer()
    if backend == "graph":
        if all(
            (
                settings.GRAPH_TENANT_ID,
                settings.GRAPH_CLIENT_ID,
                settings.GRAPH_CLIENT_SECRET,
                settings.MAIL_SENDER,
            )
        ):
            return GraphMailer(
                tenant_id=settings.GRAPH_TENANT_ID,
                client_id=settings.GRAPH_CLIENT_ID,
                client_secret=settings.GRAPH_CLIENT_SECRET,
                sender=settings.MAIL_SENDER,
                timeout=settings.MAIL_TIMEOUT_SECONDS,
            )
        logger.warning(
            "Microsoft Graph credentials not fully configured "
            "(GRAPH_TENANT_ID, GRAPH_CLIENT_ID, GRAPH_CLIENT_SECRET, MAIL_SENDER); "
            "email sending is disabled"
        )
    if backend == "smtp":
        if settings.SMTP_HOST and settings.MAIL_SENDER:
            return SmtpMailer(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                sender=settings.MAIL_SENDER,
                user=settings.SMTP_USER,
                password=settings.SMTP_PASSWORD,
                use_ssl=settings.SMTP_USE_SSL,
                timeout=settings.MAIL_TIMEOUT_SECONDS,
            )
        logger.warning("SMTP_HOST and MAIL_SENDER are required for smtp; email sending is disabled")
    return DisabledMailer()
