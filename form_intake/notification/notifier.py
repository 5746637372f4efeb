# ==============================================
# Notifier
# ==============================================
#
# PURPOSE:
#   Deliver a rendered subject/body to an address. The pipeline does
#   not care how; it only needs send() to either return or raise
#   TransientIOError so the retry envelope can try again.
#
# CLASSES:
# --------
# - Notifier (ABC)            send(address, subject, body)
# - LoggingNotifier           writes the message to the log
# - SmtpNotifier              smtplib, optional STARTTLS + login
# - WebhookNotifier           POSTs {address, subject, body} as JSON
#
# FUNCTION:
# ---------
# - create_notifier(config: NotificationConfig) -> Notifier
#
# ==============================================

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from typing import Optional

import requests

from form_intake.config import NotificationConfig
from form_intake.errors import TransientIOError

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivery contract for submission summaries."""

    @abstractmethod
    def send(self, address: str, subject: str, body: str) -> None:
        """
        Deliver one message.

        Raises:
            TransientIOError: If the transport failed
        """


class LoggingNotifier(Notifier):
    """Writes notifications to the log instead of delivering them."""

    def send(self, address: str, subject: str, body: str) -> None:
        logger.info("Notification for %s: %s\n%s", address or "<no address>", subject, body)


class SmtpNotifier(Notifier):
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = True,
        timeout: float = 10.0
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.user = user
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def send(self, address: str, subject: str, body: str) -> None:
        msg = MIMEText(body)
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = address

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise TransientIOError(f"SMTP delivery to {address} failed: {e}") from e
        logger.info("Sent notification '%s' to %s", subject, address)


class WebhookNotifier(Notifier):
    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def send(self, address: str, subject: str, body: str) -> None:
        try:
            response = requests.post(
                self.url,
                json={"address": address, "subject": subject, "body": body},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransientIOError(f"Notification webhook {self.url} failed: {e}") from e
        logger.info("Posted notification '%s' to %s", subject, self.url)


def create_notifier(config: NotificationConfig) -> Notifier:
    """Build the Notifier selected by NOTIFIER."""
    if config.transport == "smtp":
        return SmtpNotifier(
            host=config.smtp_host,
            port=config.smtp_port,
            sender=config.smtp_sender,
            user=config.smtp_user,
            password=config.smtp_password,
            starttls=config.smtp_starttls,
            timeout=config.timeout_seconds
        )
    if config.transport == "webhook":
        return WebhookNotifier(config.webhook_url, timeout=config.timeout_seconds)
    return LoggingNotifier()
