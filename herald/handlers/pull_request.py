"""Handlers for ``pull_request`` and ``pull_request_review`` events.

Each supported action is rendered into :class:`NotificationData` and sent to
the pull request owner (and, for most actions, its participants). Actions
that can change whether a pull request is mergeable then ask the
ready-to-merge evaluator to take a fresh look.
"""

from __future__ import annotations

import typing as typ

from herald.github.models import GitHubUser, PullRequest, Review
from herald.logging import get_logger, log_info, log_warning
from herald.notify.content import NotificationData
from herald.notify.readiness import ReadinessTrigger
from herald.notify.results import EventResult, NotificationOutcome
from herald.notify.status import format_pr_status, format_status

from .base import decode_payload_field, evaluate_readiness, sender_login

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.github.models import RepositoryRef
    from herald.notify.results import NotificationResult

    from .base import HandlerContext, InboundEvent

logger = get_logger(__name__)

_NO_DESCRIPTION = "No description provided"
_NO_REVIEW_COMMENTS = "No review comments"

_READINESS_TRIGGERS: typ.Final[dict[str, ReadinessTrigger]] = {
    "synchronize": ReadinessTrigger.SYNCHRONIZE,
    "ready_for_review": ReadinessTrigger.READY_FOR_REVIEW,
}


def _owner(pull_request: PullRequest) -> str:
    return pull_request.owner_login or "unknown"


def _opened(pr: PullRequest, event: InboundEvent) -> NotificationData:
    return NotificationData(
        subject=f"🎉 New Pull Request #{pr.number}: {pr.title}",
        description=f"PR owner {_owner(pr)} opened a new pull request",
        details_url=pr.html_url or None,
        status=format_pr_status("opened"),
        summary=pr.body or _NO_DESCRIPTION,
    )


def _closed(pr: PullRequest, event: InboundEvent) -> NotificationData:
    if pr.merged:
        merged_by = pr.merged_by.login if pr.merged_by is not None else "unknown"
        subject = f"🎉 Pull Request Merged #{pr.number}: {pr.title}"
        description = f"Pull request was merged by {merged_by}"
    else:
        closed_by = sender_login(event) or _owner(pr)
        subject = f"❌ Pull Request Closed #{pr.number}: {pr.title}"
        description = f"Pull request was closed by {closed_by}"
    return NotificationData(
        subject=subject,
        description=description,
        details_url=pr.html_url or None,
        status=format_pr_status("closed", merged=pr.merged),
    )


def _edited(pr: PullRequest, event: InboundEvent) -> NotificationData:
    editor = sender_login(event) or _owner(pr)
    return NotificationData(
        subject=f"✏️ Pull Request #{pr.number} Updated: {pr.title}",
        description=f"{editor} updated the pull request",
        details_url=pr.html_url or None,
        status=format_pr_status("edited"),
    )


def _reopened(pr: PullRequest, event: InboundEvent) -> NotificationData:
    reopener = sender_login(event) or _owner(pr)
    return NotificationData(
        subject=f"🔄 Pull Request Reopened #{pr.number}: {pr.title}",
        description=f"{reopener} reopened the pull request",
        details_url=pr.html_url or None,
        status=format_pr_status("reopened"),
    )


def _synchronize(pr: PullRequest, event: InboundEvent) -> NotificationData:
    return NotificationData(
        subject=f"🔄 New commits pushed to PR #{pr.number}: {pr.title}",
        description="New commits were pushed to the pull request",
        details_url=pr.html_url or None,
        status=format_pr_status("synchronize"),
    )


def _ready_for_review(pr: PullRequest, event: InboundEvent) -> NotificationData:
    return NotificationData(
        subject=f"👀 Pull Request Ready for Review #{pr.number}: {pr.title}",
        description="Pull request is now ready for review",
        details_url=pr.html_url or None,
        status=format_pr_status("ready_for_review"),
    )


_Builder = typ.Callable[[PullRequest, "InboundEvent"], NotificationData]

_BUILDERS: typ.Final[dict[str, _Builder]] = {
    "opened": _opened,
    "closed": _closed,
    "edited": _edited,
    "reopened": _reopened,
    "synchronize": _synchronize,
    "ready_for_review": _ready_for_review,
}


def _event_result(
    event: InboundEvent, notifications: cabc.Iterable[NotificationResult]
) -> EventResult:
    return EventResult.from_notifications(
        event.event_type, event.action, tuple(notifications)
    )


class PullRequestHandler:
    """Notify about pull request lifecycle and update actions."""

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Notify for ``event`` and run readiness checks where relevant."""
        pull_request = decode_payload_field(event, "pull_request", PullRequest)
        if event.action == "review_requested":
            return await self._handle_review_requested(event, repository, pull_request)

        builder = _BUILDERS.get(event.action)
        if builder is None:
            log_warning(logger, "Unknown pull request action: %s", event.action)
            return EventResult.ignored(
                event.event_type, event.action, f"Unknown action: {event.action}"
            )

        log_info(
            logger,
            "Pull request %s#%d %s by %s",
            repository.slug,
            pull_request.number,
            event.action,
            sender_login(event) or _owner(pull_request),
        )
        notification = await self._context.service.send_pr_notification(
            repository=repository,
            pull_request=pull_request,
            event_type=event.event_type,
            action=event.action,
            data=builder(pull_request, event),
        )
        notifications = [notification]
        trigger = _READINESS_TRIGGERS.get(event.action)
        if trigger is not None:
            notifications.extend(
                await evaluate_readiness(
                    self._context.evaluator,
                    repository,
                    [pull_request.number],
                    trigger,
                )
            )
        return _event_result(event, notifications)

    async def _handle_review_requested(
        self,
        event: InboundEvent,
        repository: RepositoryRef,
        pull_request: PullRequest,
    ) -> EventResult:
        if event.payload.get("requested_reviewer") is None:
            if event.payload.get("requested_team") is not None:
                return EventResult.ignored(
                    event.event_type,
                    event.action,
                    "Team review requests are not notified",
                )
            log_warning(logger, "Review requested event without requested_reviewer")
            return EventResult.failed(
                event.event_type,
                event.action,
                "No requested reviewer found",
                outcome=NotificationOutcome.MISSING_DATA,
            )

        reviewer = decode_payload_field(event, "requested_reviewer", GitHubUser)
        log_info(
            logger,
            "Review requested from %s for %s#%d",
            reviewer.login,
            repository.slug,
            pull_request.number,
        )
        found = await self._context.service.resolver.lookup_email(reviewer.login)
        if found is None:
            log_warning(
                logger,
                "No email for requested reviewer %s; notifying owner only",
                reviewer.login,
            )
        recipients = [found.email] if found is not None else []
        data = NotificationData(
            subject=(
                f"👥 Review Requested for PR #{pull_request.number}: "
                f"{pull_request.title}"
            ),
            description=f"Review requested from {reviewer.login}",
            details_url=pull_request.html_url or None,
            status=format_pr_status("review_requested"),
        )
        notification = await self._context.service.send_pr_notification(
            repository=repository,
            pull_request=pull_request,
            event_type=event.event_type,
            action=event.action,
            data=data,
            explicit_recipients=recipients,
        )
        return _event_result(event, [notification])


class PullRequestReviewHandler:
    """Notify about submitted and dismissed reviews.

    An approving review prompts a ready-to-merge evaluation after the review
    notification itself.
    """

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Notify the owner about the review in ``event``."""
        if event.action not in {"submitted", "dismissed"}:
            return EventResult.ignored(
                event.event_type, event.action, f"Unknown action: {event.action}"
            )
        pull_request = decode_payload_field(event, "pull_request", PullRequest)
        review = decode_payload_field(event, "review", Review)
        reviewer = review.user.login if review.user is not None else "unknown"
        pr_label = f"PR #{pull_request.number}: {pull_request.title}"

        if event.action == "dismissed":
            data = NotificationData(
                subject=f"🚫 Review dismissed for {pr_label}",
                description=f"A review by {reviewer} was dismissed",
                details_url=review.html_url or pull_request.html_url or None,
                status=format_status("dismissed"),
            )
        else:
            status = format_status("submitted", review.state, "📝")
            data = NotificationData(
                subject=f"📝 Review {status.label} for {pr_label}",
                description=f"{reviewer} submitted a {status.label.lower()} review",
                details_url=review.html_url or pull_request.html_url or None,
                status=status,
                summary=review.body or _NO_REVIEW_COMMENTS,
            )

        notifications = [
            await self._context.service.send_pr_notification(
                repository=repository,
                pull_request=pull_request,
                event_type=event.event_type,
                action=event.action,
                data=data,
            )
        ]
        if event.action == "submitted" and review.state.lower() == "approved":
            notifications.extend(
                await evaluate_readiness(
                    self._context.evaluator,
                    repository,
                    [pull_request.number],
                    ReadinessTrigger.REVIEW_APPROVED,
                )
            )
        return _event_result(event, notifications)
