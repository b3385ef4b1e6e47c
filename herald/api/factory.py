"""Build the webhook processor from environment configuration.

This module provides ``build_webhook_processor()`` which reads the GitHub,
notification and SMTP settings from the environment and wires them into an
:class:`~herald.handlers.router.EventRouter`.

Usage
-----
Build a processor for the API layer::

    from herald.api.factory import build_webhook_processor

    router = build_webhook_processor()

"""

from __future__ import annotations

import typing as typ

from herald.github.client import GitHubRestClient, GitHubRestConfig
from herald.handlers.router import build_event_router
from herald.logging import get_logger, log_critical, log_info, log_warning
from herald.mail.config import SMTPConfig
from herald.mail.errors import SMTPConfigError
from herald.mail.sender import LoggingEmailSender, SMTPEmailSender
from herald.notify.categories import NotificationGate
from herald.notify.config import NotificationConfig

if typ.TYPE_CHECKING:
    from herald.handlers.router import EventRouter
    from herald.mail.sender import EmailSender

__all__ = ["build_email_sender", "build_webhook_processor"]

logger = get_logger(__name__)


def build_email_sender(config: SMTPConfig, *, verify: bool = False) -> EmailSender:
    """Return an SMTP sender when credentials exist, else a logging sender.

    With ``verify`` set, the SMTP server is contacted once. A failed check is
    logged at CRITICAL and the sender is still returned.
    """
    if config.is_configured:
        log_info(
            logger,
            "Email delivery via SMTP %s:%d (secure=%s)",
            config.host,
            config.port,
            config.secure,
        )
        sender = SMTPEmailSender(config)
        if verify:
            try:
                sender.check_connection()
            except SMTPConfigError as exc:
                log_critical(logger, "Email configuration check failed: %s", exc)
            else:
                log_info(logger, "Email configuration check succeeded")
        return sender
    log_warning(
        logger,
        "HERALD_SMTP_USER/HERALD_SMTP_PASSWORD not set; emails will be logged "
        "instead of sent",
    )
    return LoggingEmailSender(sender=config.sender)


def build_webhook_processor() -> EventRouter:
    """Build an ``EventRouter`` from environment configuration.

    Raises
    ------
    GitHubConfigError
        If ``HERALD_GITHUB_TOKEN`` is not set.
    SMTPConfigError
        If the SMTP port or timeout is malformed.
    ValueError
        If a notification setting is malformed.

    """
    github = GitHubRestClient(GitHubRestConfig.from_env())
    config = NotificationConfig.from_env()
    sender = build_email_sender(SMTPConfig.from_env(), verify=True)
    enabled = NotificationGate(config).enabled_categories()
    log_info(
        logger,
        "Enabled notification categories: %s",
        ", ".join(enabled) or "none",
    )
    return build_event_router(github=github, config=config, sender=sender)
