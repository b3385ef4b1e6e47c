"""Structured log events for webhook handling and notification delivery.

The ``email.sent`` and ``email.failed`` events form the per-recipient audit
trail. Every event is emitted as ``[<event>] key=value ...`` so log
processors can parse the fields.

Usage
-----
>>> events = NotificationEventLogger()
>>> events.log_webhook_received(
...     event_type="pull_request", action="opened", delivery_id="abc"
... )

"""

from __future__ import annotations

import enum
import typing as typ

from herald.logging import get_logger, log_debug, log_error, log_info, log_warning

from .results import NotificationOutcome

if typ.TYPE_CHECKING:
    from .results import DeliveryResult, NotificationResult

logger = get_logger(__name__)

_QUIET_OUTCOMES = frozenset(
    {
        NotificationOutcome.DISABLED,
        NotificationOutcome.DUPLICATE,
        NotificationOutcome.IGNORED,
        NotificationOutcome.NOT_READY,
    }
)


class NotificationEventType(enum.StrEnum):
    """Structured log event types."""

    WEBHOOK_RECEIVED = "webhook.received"
    WEBHOOK_PROCESSED = "webhook.processed"
    NOTIFICATION_SENT = "notification.sent"
    NOTIFICATION_SKIPPED = "notification.skipped"
    NOTIFICATION_FAILED = "notification.failed"
    EMAIL_SENT = "email.sent"
    EMAIL_FAILED = "email.failed"
    READINESS_NOTIFIED = "readiness.notified"
    READINESS_SUPPRESSED = "readiness.suppressed"


class NotificationEventLogger:
    """Emit structured notification events via femtologging."""

    def log_webhook_received(
        self, *, event_type: str, action: str, delivery_id: str | None
    ) -> None:
        """Log receipt of a webhook before it is routed."""
        log_info(
            logger,
            "[%s] event=%s.%s delivery_id=%s",
            NotificationEventType.WEBHOOK_RECEIVED,
            event_type,
            action,
            delivery_id or "-",
        )

    def log_webhook_processed(
        self,
        *,
        event_type: str,
        action: str,
        processed: bool,
        success: bool,
        reason: str,
    ) -> None:
        """Log the final outcome of one webhook event."""
        log_info(
            logger,
            "[%s] event=%s.%s processed=%s success=%s reason=%s",
            NotificationEventType.WEBHOOK_PROCESSED,
            event_type,
            action,
            processed,
            success,
            reason or "-",
        )

    def log_notification_result(
        self, *, repo_slug: str, event: str, result: NotificationResult
    ) -> None:
        """Log a notification outcome at a level matching its severity.

        Parameters
        ----------
        repo_slug
            Repository slug in ``owner/name`` format.
        event
            ``event_type.action`` identifier of the notification.
        result
            Outcome returned by the notification service.

        """
        if result.success:
            dispatch = result.dispatch
            log_info(
                logger,
                "[%s] repo=%s event=%s pr=%s sent=%d failed=%d owner_notified=%s",
                NotificationEventType.NOTIFICATION_SENT,
                repo_slug,
                event,
                result.pr_number,
                dispatch.succeeded if dispatch is not None else 0,
                dispatch.failed if dispatch is not None else 0,
                result.owner_notified,
            )
            return
        if result.outcome in _QUIET_OUTCOMES:
            log_debug(
                logger,
                "[%s] repo=%s event=%s pr=%s outcome=%s reason=%s",
                NotificationEventType.NOTIFICATION_SKIPPED,
                repo_slug,
                event,
                result.pr_number,
                result.outcome,
                result.reason,
            )
            return
        log_error(
            logger,
            "[%s] repo=%s event=%s pr=%s outcome=%s reason=%s",
            NotificationEventType.NOTIFICATION_FAILED,
            repo_slug,
            event,
            result.pr_number,
            result.outcome,
            result.reason,
        )

    def log_delivery(
        self, *, notification_type: str, delivery: DeliveryResult
    ) -> None:
        """Record one per-recipient delivery in the audit trail."""
        if delivery.success:
            log_info(
                logger,
                "[%s] type=%s to=%s message_id=%s",
                NotificationEventType.EMAIL_SENT,
                notification_type,
                delivery.recipient,
                delivery.message_id,
            )
            return
        log_warning(
            logger,
            "[%s] type=%s to=%s error=%s",
            NotificationEventType.EMAIL_FAILED,
            notification_type,
            delivery.recipient,
            delivery.error,
        )

    def log_readiness(
        self, *, repo_slug: str, pr_number: int, label: str | None, reason: str
    ) -> None:
        """Log a ready-to-merge notification or its suppression."""
        if label is not None:
            log_info(
                logger,
                "[%s] repo=%s pr=%d label=%s",
                NotificationEventType.READINESS_NOTIFIED,
                repo_slug,
                pr_number,
                label,
            )
            return
        log_debug(
            logger,
            "[%s] repo=%s pr=%d reason=%s",
            NotificationEventType.READINESS_SUPPRESSED,
            repo_slug,
            pr_number,
            reason,
        )
