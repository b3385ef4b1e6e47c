"""Structured outcomes returned by every notification path.

No path in the notification engine raises to its caller; each returns one of
these records with a success flag and a tagged outcome instead.
"""

from __future__ import annotations

import dataclasses
import enum


class NotificationOutcome(enum.StrEnum):
    """Why a notification was or was not delivered."""

    SENT = "sent"
    DISABLED = "disabled"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    NO_RECIPIENTS = "no_recipients"
    MISSING_DATA = "missing_data"
    UPSTREAM_ERROR = "upstream_error"
    DELIVERY_FAILED = "delivery_failed"
    NOT_READY = "not_ready"
    ERROR = "error"


@dataclasses.dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Outcome of one email delivery attempt."""

    recipient: str
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchResult:
    """Aggregate of per-recipient deliveries for one notification."""

    deliveries: tuple[DeliveryResult, ...] = ()

    @property
    def attempted(self) -> int:
        """Number of recipients a delivery was attempted for."""
        return len(self.deliveries)

    @property
    def succeeded(self) -> int:
        """Number of successful deliveries."""
        return sum(1 for delivery in self.deliveries if delivery.success)

    @property
    def failed(self) -> int:
        """Number of failed deliveries."""
        return self.attempted - self.succeeded

    @property
    def success(self) -> bool:
        """True when at least one recipient received the notification."""
        return self.succeeded > 0

    def delivered_to(self, email: str) -> bool:
        """Return True when ``email`` received the notification."""
        target = email.lower()
        return any(
            delivery.success and delivery.recipient.lower() == target
            for delivery in self.deliveries
        )


@dataclasses.dataclass(frozen=True, slots=True)
class NotificationResult:
    """Outcome of one notification for one pull request.

    Attributes
    ----------
    outcome
        Tagged reason for the result.
    reason
        Human readable explanation, suitable for logs.
    pr_number
        Pull request the notification concerned, when known.
    dispatch
        Delivery details when a dispatch was attempted.
    owner_notified
        Whether the pull request owner received the notification.

    """

    outcome: NotificationOutcome
    reason: str = ""
    pr_number: int | None = None
    dispatch: DispatchResult | None = None
    owner_notified: bool = False

    @property
    def success(self) -> bool:
        """True only when the notification reached at least one recipient."""
        return self.outcome is NotificationOutcome.SENT

    @classmethod
    def skipped(
        cls,
        outcome: NotificationOutcome,
        reason: str,
        *,
        pr_number: int | None = None,
    ) -> NotificationResult:
        """Return a result for a notification that was never dispatched."""
        return cls(outcome=outcome, reason=reason, pr_number=pr_number)


@dataclasses.dataclass(frozen=True, slots=True)
class EventResult:
    """Outcome of processing one inbound webhook event.

    ``processed`` is False when the event was ignored or skipped before any
    notification work happened. ``success`` is True when the handler ran to
    completion without an error outcome. ``outcome`` tags events that stopped
    before producing notifications.
    """

    event_type: str
    action: str
    processed: bool
    success: bool
    reason: str = ""
    outcome: NotificationOutcome | None = None
    notifications: tuple[NotificationResult, ...] = ()

    @property
    def notifications_sent(self) -> int:
        """Number of notifications that reached at least one recipient."""
        return sum(1 for result in self.notifications if result.success)

    @classmethod
    def ignored(
        cls,
        event_type: str,
        action: str,
        reason: str,
        *,
        outcome: NotificationOutcome = NotificationOutcome.IGNORED,
    ) -> EventResult:
        """Return a result for an event that needed no work."""
        return cls(
            event_type=event_type,
            action=action,
            processed=False,
            success=True,
            reason=reason,
            outcome=outcome,
        )

    @classmethod
    def failed(
        cls,
        event_type: str,
        action: str,
        reason: str,
        *,
        outcome: NotificationOutcome = NotificationOutcome.ERROR,
    ) -> EventResult:
        """Return a result for an event whose processing failed."""
        return cls(
            event_type=event_type,
            action=action,
            processed=False,
            success=False,
            reason=reason,
            outcome=outcome,
        )

    @classmethod
    def from_notifications(
        cls,
        event_type: str,
        action: str,
        notifications: tuple[NotificationResult, ...],
    ) -> EventResult:
        """Aggregate per-PR notification results into an event result.

        The event succeeds when no notification ended in an error outcome;
        configuration skips and duplicates are not errors.
        """
        errors = [
            result
            for result in notifications
            if result.outcome in _ERROR_OUTCOMES
        ]
        reason = "; ".join(result.reason for result in errors if result.reason)
        return cls(
            event_type=event_type,
            action=action,
            processed=True,
            success=not errors,
            reason=reason,
            notifications=notifications,
        )


_ERROR_OUTCOMES = frozenset(
    {
        NotificationOutcome.NO_RECIPIENTS,
        NotificationOutcome.MISSING_DATA,
        NotificationOutcome.UPSTREAM_ERROR,
        NotificationOutcome.DELIVERY_FAILED,
        NotificationOutcome.ERROR,
    }
)
