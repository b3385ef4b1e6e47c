"""Deliver one rendered email to many recipients concurrently.

Each recipient is delivered independently through a bounded fan-out: a
failure for one address never prevents delivery to another, and there are
no retries. The aggregate succeeds when at least one recipient succeeded.
"""

from __future__ import annotations

import asyncio
import re
import typing as typ

from herald.logging import get_logger, log_exception
from herald.mail.errors import EmailDeliveryError
from herald.mail.sender import EmailMessageSpec

from .observability import NotificationEventLogger
from .results import DeliveryResult, DispatchResult

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.mail.sender import EmailSender

    from .content import EmailContent

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NOTIFICATION_TYPE_HEADER = "X-Notification-Type"
DEFAULT_MAX_CONCURRENCY = 5


def is_valid_email(address: str) -> bool:
    """Return True when ``address`` looks like ``local@domain.tld``."""
    return bool(EMAIL_PATTERN.match(address))


def _process_gathered_deliveries(
    recipients: cabc.Sequence[str],
    gathered: list[DeliveryResult | BaseException],
) -> tuple[DeliveryResult, ...]:
    """Turn ``asyncio.gather`` output into per-recipient results.

    Raises
    ------
    BaseException
        Re-raised immediately for system-level exceptions such as
        ``KeyboardInterrupt`` or task cancellation.

    """
    deliveries: list[DeliveryResult] = []
    for recipient, outcome in zip(recipients, gathered, strict=True):
        if isinstance(outcome, Exception):
            log_exception(
                logger, f"Unexpected error delivering to {recipient}", outcome
            )
            deliveries.append(
                DeliveryResult(recipient=recipient, success=False, error=str(outcome))
            )
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            deliveries.append(outcome)
    return tuple(deliveries)


class EmailDispatcher:
    """Fan one email out to a list of recipients.

    Parameters
    ----------
    sender
        Transport used for each delivery.
    max_concurrency
        Maximum number of deliveries in flight at once.
    events
        Structured event logger used for the per-recipient audit trail.

    """

    def __init__(
        self,
        sender: EmailSender,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        events: NotificationEventLogger | None = None,
    ) -> None:
        """Store the transport and concurrency bound."""
        if max_concurrency < 1:
            msg = f"max_concurrency must be positive, got: {max_concurrency}"
            raise ValueError(msg)
        self._sender = sender
        self._max_concurrency = max_concurrency
        self._events = events or NotificationEventLogger()

    async def _deliver(
        self,
        recipient: str,
        content: EmailContent,
        notification_type: str,
        semaphore: asyncio.Semaphore,
    ) -> DeliveryResult:
        if not is_valid_email(recipient):
            return DeliveryResult(
                recipient=recipient, success=False, error="invalid email address"
            )
        message = EmailMessageSpec(
            to=recipient,
            subject=content.subject,
            text_body=content.text_body,
            html_body=content.html_body,
            headers={NOTIFICATION_TYPE_HEADER: notification_type},
        )
        async with semaphore:
            try:
                message_id = await self._sender.send(message)
            except EmailDeliveryError as exc:
                return DeliveryResult(
                    recipient=recipient, success=False, error=str(exc)
                )
        return DeliveryResult(recipient=recipient, success=True, message_id=message_id)

    async def dispatch(
        self,
        recipients: cabc.Sequence[str],
        content: EmailContent,
        *,
        notification_type: str,
    ) -> DispatchResult:
        """Deliver ``content`` to every recipient.

        Parameters
        ----------
        recipients
            Addresses to deliver to, in priority order.
        content
            Rendered email.
        notification_type
            ``event_type.action`` value sent in the ``X-Notification-Type``
            header and recorded in the audit trail.

        Returns
        -------
        DispatchResult
            Per-recipient results in the order of ``recipients``.

        """
        semaphore = asyncio.Semaphore(self._max_concurrency)
        gathered = await asyncio.gather(
            *(
                self._deliver(recipient, content, notification_type, semaphore)
                for recipient in recipients
            ),
            return_exceptions=True,
        )
        deliveries = _process_gathered_deliveries(recipients, gathered)
        for delivery in deliveries:
            self._events.log_delivery(
                notification_type=notification_type, delivery=delivery
            )
        return DispatchResult(deliveries=deliveries)
