"""Handlers for pull request conversation and review comments."""

from __future__ import annotations

import typing as typ

from herald.github.errors import GitHubAPIError
from herald.github.models import Comment, IssueRef, PullRequest
from herald.logging import get_logger, log_error
from herald.notify.content import NotificationData
from herald.notify.results import EventResult, NotificationOutcome
from herald.notify.status import format_status

from .base import decode_payload_field

if typ.TYPE_CHECKING:
    from herald.github.models import RepositoryRef

    from .base import HandlerContext, InboundEvent

logger = get_logger(__name__)

_NO_COMMENT_TEXT = "No comment text"


def _author(comment: Comment) -> str:
    return comment.user.login if comment.user is not None else "unknown"


class CommentHandler:
    """Notify about new comments on pull requests.

    ``issue_comment`` events fire for issues too; only comments on issues
    that are pull requests are reported, after fetching the pull request by
    its issue number. ``pull_request_review_comment`` events carry the pull
    request directly.
    """

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Notify the pull request owner about a new comment."""
        if event.action != "created":
            return EventResult.ignored(
                event.event_type,
                event.action,
                f"Only new comments are reported, got {event.action}",
            )
        if not self._context.service.is_enabled(event.event_type, event.action):
            return EventResult.ignored(
                event.event_type,
                event.action,
                "Comment notifications are disabled",
                outcome=NotificationOutcome.DISABLED,
            )

        comment = decode_payload_field(event, "comment", Comment)
        if event.event_type == "issue_comment":
            issue = decode_payload_field(event, "issue", IssueRef)
            if issue.pull_request is None:
                return EventResult.ignored(
                    event.event_type,
                    event.action,
                    "Comment is not on a pull request",
                )
            try:
                pull_request = await self._context.github.get_pull_request(
                    repository, issue.number
                )
            except GitHubAPIError as exc:
                log_error(
                    logger,
                    "Could not fetch %s#%d for comment notification: %s",
                    repository.slug,
                    issue.number,
                    exc,
                )
                return EventResult.failed(
                    event.event_type,
                    event.action,
                    f"Could not fetch pull request: {exc}",
                    outcome=NotificationOutcome.UPSTREAM_ERROR,
                )
            subject = f"💬 New comment on PR #{pull_request.number}"
            description = f"{_author(comment)} commented on the pull request"
        else:
            pull_request = decode_payload_field(event, "pull_request", PullRequest)
            subject = f"💬 New review comment on PR #{pull_request.number}"
            location = comment.path or "the diff"
            description = f"{_author(comment)} commented on {location}"

        data = NotificationData(
            subject=f"{subject}: {pull_request.title}",
            description=description,
            details_url=comment.html_url or pull_request.html_url or None,
            status=format_status("commented"),
            summary=comment.body or _NO_COMMENT_TEXT,
        )
        notification = await self._context.service.send_pr_notification(
            repository=repository,
            pull_request=pull_request,
            event_type=event.event_type,
            action=event.action,
            data=data,
        )
        return EventResult.from_notifications(
            event.event_type, event.action, (notification,)
        )
