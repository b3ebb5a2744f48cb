"""Email notifications for new signals.

Delivery is best-effort: every recipient gets an independent attempt and a
failure for one address never blocks the others.
"""

from __future__ import annotations

import html
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import TYPE_CHECKING, Iterable

from goldtracker.exceptions import NotificationDeliveryFailure

if TYPE_CHECKING:
    from goldtracker.types import Signal, Symbol, TrackerConfig

logger = logging.getLogger(__name__)


def format_alert(signal: Signal, ticker: Symbol, price: float) -> tuple[str, str, str]:
    """Compose the subject, plain-text body and HTML body of an alert.

    :param signal: Signal that fired.
    :param ticker: Tracked symbol.
    :param price: Latest close.
    :returns: ``(subject, text, html)``.
    """
    subject = f"{signal.value} Signal Alert: {ticker}"
    text = f"Ichimoku {signal.value} signal detected for {ticker}.\n\nPrice: ${price:.2f}"
    body = html.escape(text).replace("\n", "<br>")
    return subject, text, f"<p>{body}</p>"


class Notifier(ABC):
    """Channel that delivers one message to one recipient."""

    @property
    def is_configured(self) -> bool:
        """True when the channel has what it needs to send."""
        return True

    @abstractmethod
    def send(self, recipient: str, subject: str, text: str, html_body: str) -> None:
        """Deliver a message.

        :param recipient: Destination address.
        :param subject: Message subject.
        :param text: Plain-text body.
        :param html_body: HTML body.
        :raises NotificationDeliveryFailure: If delivery fails.
        """
        ...


class SmtpNotifier(Notifier):
    """Sends multipart email through an SMTP server with STARTTLS.

    Each recipient gets a separate message so addresses are never shared.

    :param config: Tracker configuration carrying the SMTP settings.
    """

    def __init__(self, config: TrackerConfig) -> None:
        self.host = config.smtp_host
        self.port = config.smtp_port
        self.user = config.smtp_user
        self.password = config.smtp_password
        self.sender_name = config.sender_name
        self.timeout = config.smtp_timeout

    @property
    def is_configured(self) -> bool:
        """True when login credentials are available."""
        return bool(self.user and self.password)

    def build_message(
        self, recipient: str, subject: str, text: str, html_body: str
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.user or ""))
        msg["To"] = recipient
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def send(self, recipient: str, subject: str, text: str, html_body: str) -> None:
        msg = self.build_message(recipient, subject, text, html_body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryFailure(recipient, str(e)) from e


def parse_recipients(value: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated address list, dropping blanks."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def deliver_alert(
    notifier: Notifier,
    recipients: Iterable[str],
    subject: str,
    text: str,
    html_body: str,
) -> dict[str, bool]:
    """Send one message to every recipient independently.

    :param notifier: Delivery channel.
    :param recipients: Destination addresses; blanks are skipped.
    :param subject: Message subject.
    :param text: Plain-text body.
    :param html_body: HTML body.
    :returns: Mapping of recipient to delivery success.
    """
    if not notifier.is_configured:
        logger.warning("Notification credentials missing. Skipping email.")
        return {}

    results: dict[str, bool] = {}
    for recipient in parse_recipients(list(recipients)):
        try:
            notifier.send(recipient, subject, text, html_body)
        except NotificationDeliveryFailure as e:
            logger.error(f"Email failed for {recipient}: {e.reason}")
            results[recipient] = False
        else:
            logger.info(f"Message sent to {recipient}")
            results[recipient] = True
    return results


__all__ = [
    "format_alert",
    "Notifier",
    "SmtpNotifier",
    "parse_recipients",
    "deliver_alert",
]
