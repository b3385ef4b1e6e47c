"""Handlers for ``check_run`` and ``check_suite`` events.

A completed check run re-fetches every check run for its head commit and
sends one aggregated notification per associated pull request. Successful
runs and completed suites also prompt a ready-to-merge evaluation.
"""

from __future__ import annotations

import typing as typ

from herald.github.errors import GitHubAPIError
from herald.github.models import CheckRun, CheckSuite
from herald.logging import get_logger, log_debug, log_error, log_info
from herald.notify.checks import (
    PASSED_CONCLUSIONS,
    format_check_run_description,
    format_check_run_subject,
    summarize_check_runs,
)
from herald.notify.content import NotificationData
from herald.notify.readiness import ReadinessTrigger
from herald.notify.results import EventResult, NotificationOutcome, NotificationResult
from herald.notify.status import format_status

from .base import decode_payload_field, evaluate_readiness

if typ.TYPE_CHECKING:
    from herald.github.models import RepositoryRef
    from herald.notify.checks import CheckRunSummary

    from .base import HandlerContext, InboundEvent

logger = get_logger(__name__)

NO_PULL_REQUESTS_REASON = "No associated pull requests"


def check_run_dedup_key(
    repository: RepositoryRef, check_run: CheckRun, action: str
) -> str:
    """Return the redelivery key for one check run completion."""
    return (
        f"check_run:{repository.slug}:{check_run.head_sha}:{check_run.id}:"
        f"{action}:{check_run.conclusion}"
    )


def _duplicate(event: InboundEvent, key: str) -> EventResult:
    log_debug(logger, "Duplicate check run event: %s", key)
    return EventResult.ignored(
        event.event_type,
        event.action,
        "Duplicate event ignored",
        outcome=NotificationOutcome.DUPLICATE,
    )


class CheckRunHandler:
    """Aggregate completed check runs into pull request notifications."""

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Aggregate the commit's checks and notify each associated PR."""
        if event.action != "completed":
            log_debug(logger, "Skipping check_run.%s", event.action)
            return EventResult.ignored(
                event.event_type,
                event.action,
                f"Only completed check runs are reported, got {event.action}",
            )

        check_run = decode_payload_field(event, "check_run", CheckRun)
        succeeded = check_run.conclusion in PASSED_CONCLUSIONS
        notify = self._context.service.is_enabled(event.event_type, event.action)
        if not notify and not succeeded:
            return EventResult.ignored(
                event.event_type,
                event.action,
                "Check result notifications are disabled",
                outcome=NotificationOutcome.DISABLED,
            )

        key = check_run_dedup_key(repository, check_run, event.action)
        if await self._context.event_cache.seen_recently(key):
            return _duplicate(event, key)

        if not check_run.pull_requests:
            log_info(
                logger,
                "Check run %s on %s has no associated pull requests",
                check_run.name,
                repository.slug,
            )
            return EventResult.ignored(
                event.event_type, event.action, NO_PULL_REQUESTS_REASON
            )

        summary: CheckRunSummary | None = None
        if notify:
            try:
                check_runs = await self._context.github.list_check_runs_for_ref(
                    repository, check_run.head_sha
                )
            except GitHubAPIError as exc:
                log_error(
                    logger,
                    "Could not list check runs for %s@%s: %s",
                    repository.slug,
                    check_run.head_sha,
                    exc,
                )
                return EventResult.failed(
                    event.event_type,
                    event.action,
                    f"Could not list check runs: {exc}",
                    outcome=NotificationOutcome.UPSTREAM_ERROR,
                )
            summary = summarize_check_runs(check_runs, check_run.name)

        # A failed listing leaves the key unmarked.
        if await self._context.event_cache.check_and_mark(key):
            return _duplicate(event, key)

        notifications: list[NotificationResult] = []
        pr_numbers = [link.number for link in check_run.pull_requests]
        if summary is not None:
            for number in pr_numbers:
                notifications.append(
                    await self._notify(event, repository, check_run, summary, number)
                )
        if succeeded:
            notifications.extend(
                await evaluate_readiness(
                    self._context.evaluator,
                    repository,
                    pr_numbers,
                    ReadinessTrigger.CHECK_RUN_SUCCESS,
                )
            )
        return EventResult.from_notifications(
            event.event_type, event.action, tuple(notifications)
        )

    async def _notify(  # noqa: PLR0913
        self,
        event: InboundEvent,
        repository: RepositoryRef,
        check_run: CheckRun,
        summary: CheckRunSummary,
        pr_number: int,
    ) -> NotificationResult:
        try:
            pull_request = await self._context.github.get_pull_request(
                repository, pr_number
            )
        except GitHubAPIError as exc:
            log_error(
                logger,
                "Could not fetch %s#%d for check run notification: %s",
                repository.slug,
                pr_number,
                exc,
            )
            return NotificationResult.skipped(
                NotificationOutcome.UPSTREAM_ERROR,
                f"Could not fetch pull request: {exc}",
                pr_number=pr_number,
            )

        subject = format_check_run_subject(summary)
        output_summary = check_run.output.summary if check_run.output else None
        data = NotificationData(
            subject=f"{subject} - PR #{pull_request.number}: {pull_request.title}",
            description=format_check_run_description(
                summary, triggering_summary=output_summary
            ),
            details_url=check_run.html_url or check_run.details_url,
            status=format_status(check_run.status, check_run.conclusion),
        )
        return await self._context.service.send_pr_notification(
            repository=repository,
            pull_request=pull_request,
            event_type=event.event_type,
            action=event.action,
            data=data,
        )


class CheckSuiteHandler:
    """Run ready-to-merge evaluation when a check suite completes.

    Check suites send no email of their own; individual check runs already
    report results.
    """

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Evaluate every pull request attached to the completed suite."""
        if event.action != "completed":
            return EventResult.ignored(
                event.event_type,
                event.action,
                f"Only completed check suites are evaluated, got {event.action}",
            )
        suite = decode_payload_field(event, "check_suite", CheckSuite)
        if not suite.pull_requests:
            return EventResult.ignored(
                event.event_type, event.action, NO_PULL_REQUESTS_REASON
            )
        notifications = await evaluate_readiness(
            self._context.evaluator,
            repository,
            [link.number for link in suite.pull_requests],
            ReadinessTrigger.CHECK_SUITE_COMPLETED,
        )
        return EventResult.from_notifications(
            event.event_type, event.action, tuple(notifications)
        )
