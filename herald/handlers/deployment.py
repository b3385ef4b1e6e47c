"""Handler for ``deployment`` and ``deployment_status`` events.

Deployments are tied to a commit, not a pull request, so the pull requests
containing the deployed commit are looked up first. Only creation and final
status updates (success, failure, error) are reported, and a status update
redelivered within the event window is dropped.
"""

from __future__ import annotations

import typing as typ

from herald.github.errors import GitHubAPIError
from herald.github.models import Deployment, DeploymentStatus
from herald.logging import get_logger, log_debug, log_error, log_info
from herald.notify.content import NotificationData
from herald.notify.results import EventResult, NotificationOutcome
from herald.notify.status import format_status

from .base import decode_payload_field

if typ.TYPE_CHECKING:
    from herald.github.models import PullRequest, RepositoryRef

    from .base import HandlerContext, InboundEvent

logger = get_logger(__name__)

FINAL_DEPLOYMENT_STATES = frozenset({"success", "failure", "error"})

_STATE_HEADLINES: typ.Final[dict[str, str]] = {
    "success": "✅ Deployment succeeded",
    "failure": "❌ Deployment failed",
    "error": "⚠️ Deployment errored",
}


def _short_sha(sha: str) -> str:
    return sha[:7]


def _deployment_lines(deployment: Deployment) -> list[str]:
    lines = [
        f"Environment: {deployment.environment or 'unknown'}",
        f"Ref: {deployment.ref or 'unknown'}",
        f"Commit: {_short_sha(deployment.sha)}",
    ]
    if deployment.description:
        lines.append(f"Description: {deployment.description}")
    return lines


class DeploymentHandler:
    """Notify pull requests about deployments of their commits."""

    def __init__(self, context: HandlerContext) -> None:
        """Store shared collaborators."""
        self._context = context

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Route to deployment creation or status handling."""
        if not self._context.service.is_enabled(event.event_type, event.action):
            return EventResult.ignored(
                event.event_type,
                event.action,
                "Deployment notifications are disabled",
                outcome=NotificationOutcome.DISABLED,
            )
        if event.event_type == "deployment_status":
            return await self._handle_status(event, repository)
        return await self._handle_created(event, repository)

    async def _handle_created(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        deployment = decode_payload_field(event, "deployment", Deployment)
        if event.action != "created":
            log_debug(logger, "Skipping deployment.%s", event.action)
            return EventResult.ignored(
                event.event_type, event.action, "Only created deployments are reported"
            )
        log_info(
            logger,
            "Deployment created: %s (%s) in %s",
            deployment.environment,
            _short_sha(deployment.sha),
            repository.slug,
        )
        creator = deployment.creator.login if deployment.creator else "unknown"

        def build(pr: PullRequest) -> NotificationData:
            return NotificationData(
                subject=(
                    f"🚀 Deployment started: {deployment.environment} - "
                    f"PR #{pr.number}: {pr.title}"
                ),
                description=(
                    f"{creator} started a deployment to {deployment.environment}"
                ),
                details_url=pr.html_url or None,
                status=format_status("pending", emoji_override="🚀"),
                summary="\n".join(_deployment_lines(deployment)),
            )

        return await self._notify_pull_requests(event, repository, deployment, build)

    async def _handle_status(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        status = decode_payload_field(event, "deployment_status", DeploymentStatus)
        deployment = decode_payload_field(event, "deployment", Deployment)
        state = status.state.lower()
        if state not in FINAL_DEPLOYMENT_STATES:
            log_debug(logger, "Skipping non-final deployment status %s", state)
            return EventResult.ignored(
                event.event_type,
                event.action,
                f"Deployment status {state!r} is not final",
            )

        key = f"deployment_status:{deployment.id}-{state}"
        if await self._context.event_cache.check_and_mark(key):
            log_debug(logger, "Duplicate deployment status event: %s", key)
            return EventResult.ignored(
                event.event_type,
                event.action,
                "Duplicate event ignored",
                outcome=NotificationOutcome.DUPLICATE,
            )
        log_info(
            logger,
            "Deployment %s: %s (%s) in %s",
            state,
            deployment.environment,
            _short_sha(deployment.sha),
            repository.slug,
        )

        summary = _deployment_lines(deployment)
        if status.description:
            summary.append(f"Status: {status.description}")
        if status.environment_url:
            summary.append(f"Environment URL: {status.environment_url}")
        if status.log_url:
            summary.append(f"Logs: {status.log_url}")
        if status.updated_at:
            summary.append(f"Updated: {status.updated_at}")

        def build(pr: PullRequest) -> NotificationData:
            return NotificationData(
                subject=(
                    f"{_STATE_HEADLINES[state]}: {deployment.environment} - "
                    f"PR #{pr.number}: {pr.title}"
                ),
                description=(
                    f"Deployment to {deployment.environment} finished with "
                    f"state {state}"
                ),
                details_url=(
                    status.target_url or status.log_url or pr.html_url or None
                ),
                status=format_status(state),
                summary="\n".join(summary),
            )

        return await self._notify_pull_requests(event, repository, deployment, build)

    async def _notify_pull_requests(
        self,
        event: InboundEvent,
        repository: RepositoryRef,
        deployment: Deployment,
        build: typ.Callable[[PullRequest], NotificationData],
    ) -> EventResult:
        try:
            pull_requests = await self._context.github.list_pull_requests_for_commit(
                repository, deployment.sha
            )
        except GitHubAPIError as exc:
            log_error(
                logger,
                "Could not find pull requests for commit %s in %s: %s",
                deployment.sha,
                repository.slug,
                exc,
            )
            return EventResult.failed(
                event.event_type,
                event.action,
                f"Could not find pull requests for commit: {exc}",
                outcome=NotificationOutcome.UPSTREAM_ERROR,
            )
        if not pull_requests:
            log_info(
                logger,
                "No pull requests found for deployment commit %s",
                _short_sha(deployment.sha),
            )
            return EventResult.ignored(
                event.event_type, event.action, "No associated pull requests"
            )

        notifications = [
            await self._context.service.send_pr_notification(
                repository=repository,
                pull_request=pull_request,
                event_type=event.event_type,
                action=event.action,
                data=build(pull_request),
            )
            for pull_request in pull_requests
        ]
        return EventResult.from_notifications(
            event.event_type, event.action, tuple(notifications)
        )
