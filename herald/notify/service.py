"""Notification service: gate, resolve recipients, compose, dispatch.

Handlers describe *what* happened with :class:`NotificationData`; the service
decides whether to send, to whom, and records the outcome.
"""

from __future__ import annotations

import typing as typ

from .categories import NotificationCategory
from .content import compose_email
from .observability import NotificationEventLogger
from .results import NotificationOutcome, NotificationResult

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.github.models import PullRequest, RepositoryRef

    from .categories import NotificationGate
    from .content import NotificationData
    from .dispatch import EmailDispatcher
    from .recipients import RecipientResolver

NO_RECIPIENTS_REASON = "No email recipients found"


class NotificationService:
    """Send pull request notifications subject to configuration.

    Parameters
    ----------
    gate
        Category switches.
    resolver
        Recipient resolution for a pull request.
    dispatcher
        Per-recipient email fan-out.
    events
        Structured event logger; a default instance is created when omitted.

    """

    def __init__(
        self,
        *,
        gate: NotificationGate,
        resolver: RecipientResolver,
        dispatcher: EmailDispatcher,
        events: NotificationEventLogger | None = None,
    ) -> None:
        """Store collaborators."""
        self._gate = gate
        self._resolver = resolver
        self._dispatcher = dispatcher
        self._events = events or NotificationEventLogger()

    @property
    def resolver(self) -> RecipientResolver:
        """Recipient resolver, exposed for targeted lookups by handlers."""
        return self._resolver

    def is_enabled(self, event_type: str, action: str) -> bool:
        """Return True when notifications for ``event_type.action`` are on."""
        return self._gate.is_enabled(event_type, action)

    def ready_to_merge_enabled(self) -> bool:
        """Return True when ready-to-merge notifications are on."""
        return self._gate.category_enabled(NotificationCategory.READY_TO_MERGE)

    async def send_pr_notification(  # noqa: PLR0913
        self,
        *,
        repository: RepositoryRef,
        pull_request: PullRequest,
        event_type: str,
        action: str,
        data: NotificationData,
        explicit_recipients: cabc.Sequence[str] | None = None,
    ) -> NotificationResult:
        """Send a notification about ``pull_request`` if its category is on.

        Parameters
        ----------
        repository
            Repository the pull request belongs to.
        pull_request
            Pull request whose owner (and participants) are notified.
        event_type, action
            Webhook event identity used for gating and the notification type.
        data
            Subject, description, link, status and summary to render.
        explicit_recipients
            Targeted recipients that replace additional-recipient expansion.

        Returns
        -------
        NotificationResult
            ``DISABLED`` when gated off, otherwise the delivery outcome.

        """
        if not self._gate.is_enabled(event_type, action):
            return NotificationResult.skipped(
                NotificationOutcome.DISABLED,
                f"Notifications for {event_type}.{action} are disabled",
                pr_number=pull_request.number,
            )
        return await self._deliver(
            repository, pull_request, event_type, action, data, explicit_recipients
        )

    async def send_ready_to_merge(
        self,
        *,
        repository: RepositoryRef,
        pull_request: PullRequest,
        data: NotificationData,
    ) -> NotificationResult:
        """Send a synthesized ``pull_request.ready_to_merge`` notification.

        Controlled by the ready-to-merge switch only, independent of the
        category that triggered the evaluation.
        """
        if not self.ready_to_merge_enabled():
            return NotificationResult.skipped(
                NotificationOutcome.DISABLED,
                "Ready-to-merge notifications are disabled",
                pr_number=pull_request.number,
            )
        return await self._deliver(
            repository, pull_request, "pull_request", "ready_to_merge", data, None
        )

    async def _deliver(  # noqa: PLR0913
        self,
        repository: RepositoryRef,
        pull_request: PullRequest,
        event_type: str,
        action: str,
        data: NotificationData,
        explicit_recipients: cabc.Sequence[str] | None,
    ) -> NotificationResult:
        event = f"{event_type}.{action}"
        recipients = await self._resolver.resolve(pull_request, explicit_recipients)
        if not recipients:
            result = NotificationResult.skipped(
                NotificationOutcome.NO_RECIPIENTS,
                NO_RECIPIENTS_REASON,
                pr_number=pull_request.number,
            )
            self._events.log_notification_result(
                repo_slug=repository.slug, event=event, result=result
            )
            return result

        content = compose_email(
            data,
            repository=repository.slug,
            pull_request=pull_request,
            event=event,
        )
        dispatch = await self._dispatcher.dispatch(
            recipients.emails, content, notification_type=event
        )
        owner_notified = recipients.owner_email is not None and dispatch.delivered_to(
            recipients.owner_email
        )
        if dispatch.success:
            outcome = NotificationOutcome.SENT
            reason = (
                f"Delivered to {dispatch.succeeded}/{dispatch.attempted} recipients"
            )
        else:
            outcome = NotificationOutcome.DELIVERY_FAILED
            reason = f"All {dispatch.attempted} deliveries failed"
        result = NotificationResult(
            outcome=outcome,
            reason=reason,
            pr_number=pull_request.number,
            dispatch=dispatch,
            owner_notified=owner_notified,
        )
        self._events.log_notification_result(
            repo_slug=repository.slug, event=event, result=result
        )
        return result
