from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

logger = logging.getLogger(__name__)

SMTP_SECURITY_MODES = ("starttls", "ssl", "none")


class NotificationTransport(Protocol):
    def send(
        self,
        *,
        recipient: str,
        sender: str,
        subject: str,
        plain_body: str,
        html_body: str,
    ) -> None: ...


def build_email(*, recipient: str, sender: str, subject: str, plain_body: str, html_body: str) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = recipient
    # Clients show the last part they can render, so HTML goes last.
    message.attach(MIMEText(plain_body, "plain", "utf-8"))
    message.attach(MIMEText(html_body, "html", "utf-8"))
    return message


class SmtpTransport:
    """Send a multipart/alternative email through an authenticated SMTP relay."""

    def __init__(
        self,
        host: str,
        *,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        security: str = "starttls",
        timeout_seconds: float = 30.0,
    ) -> None:
        if security not in SMTP_SECURITY_MODES:
            raise ValueError(f"Unknown SMTP security mode: {security!r}")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.security = security
        self.timeout_seconds = timeout_seconds

    def _connect(self) -> smtplib.SMTP:
        if self.security == "ssl":
            return smtplib.SMTP_SSL(
                self.host,
                self.port,
                timeout=self.timeout_seconds,
                context=ssl.create_default_context(),
            )
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        if self.security == "starttls":
            server.starttls(context=ssl.create_default_context())
        return server

    def send(
        self,
        *,
        recipient: str,
        sender: str,
        subject: str,
        plain_body: str,
        html_body: str,
    ) -> None:
        message = build_email(
            recipient=recipient,
            sender=sender,
            subject=subject,
            plain_body=plain_body,
            html_body=html_body,
        )
        with self._connect() as server:
            if self.username:
                server.login(self.username, self.password or "")
            server.sendmail(sender, [recipient], message.as_string())
        logger.info(f"Sent {subject!r} to {recipient} via {self.host}:{self.port}.")
