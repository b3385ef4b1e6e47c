"""Ready-to-merge evaluation for pull requests.

GitHub computes ``mergeable_state`` asynchronously, so the value embedded in a
webhook payload is often stale. Every trigger re-fetches the pull request and
only ``clean`` or ``unstable`` states produce a notification. A notification
for a given pull request suppresses further ones for a trailing window,
whichever trigger fires next.

Usage
-----
>>> evaluator = ReadyToMergeEvaluator(
...     github=client,
...     service=service,
...     cache=TimeWindowCache(READY_TO_MERGE_DEDUP_WINDOW),
... )
>>> await evaluator.evaluate(repo, 42, ReadinessTrigger.SYNCHRONIZE)

"""

from __future__ import annotations

import dataclasses
import enum
import types
import typing as typ

from herald.github.errors import GitHubAPIError
from herald.github.models import MergeableState
from herald.logging import get_logger, log_error

from .content import NotificationData
from .observability import NotificationEventLogger
from .results import NotificationOutcome
from .status import format_status

if typ.TYPE_CHECKING:
    from herald.github.client import GitHubClient
    from herald.github.models import PullRequest, RepositoryRef

    from .dedup import TimeWindowCache
    from .results import NotificationResult
    from .service import NotificationService

logger = get_logger(__name__)


class ReadinessTrigger(enum.StrEnum):
    """Events that prompt a ready-to-merge evaluation."""

    REVIEW_APPROVED = "review_approved"
    SYNCHRONIZE = "synchronize"
    READY_FOR_REVIEW = "ready_for_review"
    CHECK_RUN_SUCCESS = "check_run_success"
    CHECK_SUITE_COMPLETED = "check_suite_completed"


_READY_LABELS: typ.Mapping[str, str] = types.MappingProxyType(
    {
        MergeableState.CLEAN: "READY TO MERGE",
        MergeableState.UNSTABLE: "READY TO MERGE (UNSTABLE)",
    }
)

_STATE_DETAILS: typ.Mapping[str, str] = types.MappingProxyType(
    {
        MergeableState.CLEAN: (
            "All required checks have passed and the branch can be merged "
            "without conflicts."
        ),
        MergeableState.UNSTABLE: (
            "The branch can be merged, but some non-required checks are failing "
            "or still pending."
        ),
    }
)


def readiness_label(pull_request: PullRequest) -> str | None:
    """Return the ready label for ``pull_request`` or ``None`` if not ready.

    Draft pull requests are never ready, whatever GitHub reports.
    """
    if not pull_request.is_open or pull_request.draft:
        return None
    if pull_request.mergeable_state is None:
        return None
    return _READY_LABELS.get(pull_request.mergeable_state)


@dataclasses.dataclass(frozen=True, slots=True)
class ReadinessResult:
    """Outcome of one ready-to-merge evaluation."""

    ready: bool
    outcome: NotificationOutcome
    reason: str
    pr_number: int
    label: str | None = None
    mergeable_state: str | None = None
    notification: NotificationResult | None = None


class ReadyToMergeEvaluator:
    """Decide whether a pull request just became ready to merge.

    Parameters
    ----------
    github
        Client used to re-fetch the pull request on every trigger.
    service
        Notification service that owns the ready-to-merge switch and delivery.
    cache
        Dedup cache keyed by pull request; typically a 30 minute window.
    events
        Structured event logger.

    """

    def __init__(
        self,
        *,
        github: GitHubClient,
        service: NotificationService,
        cache: TimeWindowCache,
        events: NotificationEventLogger | None = None,
    ) -> None:
        """Store collaborators."""
        self._github = github
        self._service = service
        self._cache = cache
        self._events = events or NotificationEventLogger()

    @staticmethod
    def dedup_key(repository: RepositoryRef, pr_number: int) -> str:
        """Return the cache key for a pull request, independent of trigger."""
        return f"{repository.slug}#{pr_number}"

    def _not_ready(
        self,
        repository: RepositoryRef,
        pr_number: int,
        outcome: NotificationOutcome,
        reason: str,
        mergeable_state: str | None = None,
    ) -> ReadinessResult:
        self._events.log_readiness(
            repo_slug=repository.slug, pr_number=pr_number, label=None, reason=reason
        )
        return ReadinessResult(
            ready=False,
            outcome=outcome,
            reason=reason,
            pr_number=pr_number,
            mergeable_state=mergeable_state,
        )

    async def evaluate(
        self,
        repository: RepositoryRef,
        pr_number: int,
        trigger: ReadinessTrigger,
    ) -> ReadinessResult:
        """Evaluate ``pr_number`` and notify when it is ready to merge.

        Parameters
        ----------
        repository
            Repository containing the pull request.
        pr_number
            Pull request number.
        trigger
            What prompted the evaluation; recorded in the notification only.

        Returns
        -------
        ReadinessResult
            Never raises. API failures are reported as ``UPSTREAM_ERROR`` and
            treated as not ready.

        """
        if not self._service.ready_to_merge_enabled():
            return ReadinessResult(
                ready=False,
                outcome=NotificationOutcome.DISABLED,
                reason="Ready-to-merge notifications are disabled",
                pr_number=pr_number,
            )

        key = self.dedup_key(repository, pr_number)
        if await self._cache.seen_recently(key):
            return self._not_ready(
                repository,
                pr_number,
                NotificationOutcome.DUPLICATE,
                "Ready-to-merge notification already sent recently",
            )

        try:
            pull_request = await self._github.get_pull_request(repository, pr_number)
        except GitHubAPIError as exc:
            log_error(
                logger,
                "Could not re-fetch %s#%d for ready-to-merge check: %s",
                repository.slug,
                pr_number,
                exc,
            )
            return self._not_ready(
                repository,
                pr_number,
                NotificationOutcome.UPSTREAM_ERROR,
                f"Could not fetch pull request: {exc}",
            )

        state = pull_request.mergeable_state
        label = readiness_label(pull_request)
        if label is None:
            return self._not_ready(
                repository,
                pr_number,
                NotificationOutcome.NOT_READY,
                f"Pull request is not ready to merge (state={state})",
                mergeable_state=state,
            )

        if await self._cache.check_and_mark(key):
            return self._not_ready(
                repository,
                pr_number,
                NotificationOutcome.DUPLICATE,
                "Ready-to-merge notification already sent recently",
                mergeable_state=state,
            )

        self._events.log_readiness(
            repo_slug=repository.slug, pr_number=pr_number, label=label, reason=trigger
        )
        notification = await self._service.send_ready_to_merge(
            repository=repository,
            pull_request=pull_request,
            data=self._notification_data(pull_request, label, trigger),
        )
        return ReadinessResult(
            ready=True,
            outcome=notification.outcome,
            reason=notification.reason,
            pr_number=pr_number,
            label=label,
            mergeable_state=state,
            notification=notification,
        )

    @staticmethod
    def _notification_data(
        pull_request: PullRequest, label: str, trigger: ReadinessTrigger
    ) -> NotificationData:
        status = dataclasses.replace(format_status("ready_to_merge"), label=label)
        state = pull_request.mergeable_state or MergeableState.UNKNOWN
        detail = _STATE_DETAILS.get(state, "")
        return NotificationData(
            subject=(
                f"{status.emoji} {label}: PR #{pull_request.number}: "
                f"{pull_request.title}"
            ),
            description=f"Pull request #{pull_request.number} is {label.lower()}",
            details_url=pull_request.html_url or None,
            status=status,
            summary=f"{detail}\nMergeable state: {state} (checked after {trigger})",
        )
