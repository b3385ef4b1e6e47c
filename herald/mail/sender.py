"""Email senders: SMTP for real delivery, logging when SMTP is unconfigured.

``smtplib`` is blocking, so :class:`SMTPEmailSender` runs each session in a
worker thread via :func:`asyncio.to_thread`. Each message uses its own SMTP
session, so concurrent deliveries never share a connection.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import smtplib
import ssl
import typing as typ
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

from herald.logging import get_logger, log_info

from .errors import EmailDeliveryError, SMTPConfigError

if typ.TYPE_CHECKING:
    from .config import SMTPConfig

logger = get_logger(__name__)

GENERATED_BY = "Herald"


@dataclasses.dataclass(frozen=True, slots=True)
class EmailMessageSpec:
    """One outbound email addressed to a single recipient."""

    to: str
    subject: str
    text_body: str
    html_body: str
    headers: cabc.Mapping[str, str] = dataclasses.field(default_factory=dict)


class EmailSender(typ.Protocol):
    """Transport that delivers one message and returns its Message-ID."""

    async def send(self, message: EmailMessageSpec) -> str:
        """Deliver ``message``; raise ``EmailDeliveryError`` on failure."""
        ...


SMTPFactory = cabc.Callable[[str, int, float], smtplib.SMTP]


def build_message(outgoing: EmailMessageSpec, *, sender: str) -> EmailMessage:
    """Build a multipart/alternative message with text and HTML parts."""
    message = EmailMessage()
    message["From"] = sender
    message["To"] = outgoing.to
    message["Subject"] = outgoing.subject
    message["Date"] = formatdate(localtime=False, usegmt=True)
    domain = sender.rpartition("@")[2] or "herald.local"
    message["Message-ID"] = make_msgid(domain=domain)
    message["X-Generated-By"] = GENERATED_BY
    for name, value in outgoing.headers.items():
        message[name] = value
    message.set_content(outgoing.text_body)
    message.add_alternative(outgoing.html_body, subtype="html")
    return message


class SMTPEmailSender:
    """Deliver messages through an authenticated SMTP server.

    Parameters
    ----------
    config
        Server address, credentials and TLS mode.
    smtp_factory
        Optional callable ``(host, port, timeout)`` returning an SMTP client.
        Defaults to ``smtplib.SMTP_SSL`` when ``config.secure`` is set and
        ``smtplib.SMTP`` with STARTTLS otherwise.

    """

    def __init__(
        self,
        config: SMTPConfig,
        *,
        smtp_factory: SMTPFactory | None = None,
    ) -> None:
        """Store configuration and the connection factory."""
        self._config = config
        self._smtp_factory = smtp_factory

    def _open(self) -> smtplib.SMTP:
        config = self._config
        if self._smtp_factory is not None:
            return self._smtp_factory(config.host, config.port, config.timeout_s)
        if config.secure:
            return smtplib.SMTP_SSL(
                config.host,
                config.port,
                timeout=config.timeout_s,
                context=ssl.create_default_context(),
            )
        return smtplib.SMTP(config.host, config.port, timeout=config.timeout_s)

    def _authenticate(self, smtp: smtplib.SMTP) -> None:
        if not self._config.secure:
            smtp.starttls(context=ssl.create_default_context())
        if self._config.username and self._config.password:
            smtp.login(self._config.username, self._config.password)

    def _send_blocking(self, message: EmailMessage, recipient: str) -> None:
        try:
            with self._open() as smtp:
                self._authenticate(smtp)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError.from_exception(recipient, exc) from exc

    def check_connection(self) -> None:
        """Connect, authenticate and issue ``NOOP`` without sending mail.

        Raises
        ------
        SMTPConfigError
            If the server cannot be reached or rejects the credentials.

        """
        try:
            with self._open() as smtp:
                self._authenticate(smtp)
                smtp.noop()
        except (smtplib.SMTPException, OSError) as exc:
            raise SMTPConfigError.unreachable(
                self._config.host, self._config.port, exc
            ) from exc

    async def send(self, message: EmailMessageSpec) -> str:
        """Deliver ``message`` and return its Message-ID.

        Raises
        ------
        EmailDeliveryError
            If the SMTP session fails at any stage.

        """
        built = build_message(message, sender=self._config.sender)
        await asyncio.to_thread(self._send_blocking, built, message.to)
        return str(built["Message-ID"])


class LoggingEmailSender:
    """Stand-in transport that logs messages instead of sending them.

    Used when SMTP credentials are not configured so the rest of the
    pipeline can run end to end in development.
    """

    def __init__(self, *, sender: str = "herald@localhost") -> None:
        """Store the address used in the logged ``From`` header."""
        self._sender = sender

    async def send(self, message: EmailMessageSpec) -> str:
        """Log ``message`` and return a generated Message-ID."""
        built = build_message(message, sender=self._sender)
        log_info(
            logger,
            "SMTP not configured; would send email to=%s subject=%r "
            "notification_type=%s",
            message.to,
            message.subject,
            message.headers.get("X-Notification-Type", "-"),
        )
        return str(built["Message-ID"])
