"""Email transports used to deliver notifications."""

from __future__ import annotations

from .config import SMTPConfig
from .errors import EmailDeliveryError, SMTPConfigError
from .sender import EmailMessageSpec, EmailSender, LoggingEmailSender, SMTPEmailSender

__all__ = [
    "EmailDeliveryError",
    "EmailMessageSpec",
    "EmailSender",
    "LoggingEmailSender",
    "SMTPConfig",
    "SMTPConfigError",
    "SMTPEmailSender",
]
