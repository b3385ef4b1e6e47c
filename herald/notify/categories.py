"""Notification categories and the gate that enables or suppresses them.

Every ``(event_type, action)`` pair Herald can notify about is listed once in
``_CATEGORY_TABLE``. Pairs absent from the table are never notified.
"""

from __future__ import annotations

import enum
import types
import typing as typ

from herald.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from .config import NotificationConfig

logger = get_logger(__name__)


class NotificationCategory(enum.StrEnum):
    """Groups of events sharing one configuration switch."""

    PR_LIFECYCLE = "pr_lifecycle"
    PR_REVIEWS = "pr_reviews"
    PR_COMMENTS = "pr_comments"
    CHECK_RESULTS = "check_results"
    PR_UPDATES = "pr_updates"
    DEPLOYMENTS = "deployments"
    READY_TO_MERGE = "ready_to_merge"


ANY_ACTION = "*"

_CATEGORY_TABLE: typ.Mapping[tuple[str, str], NotificationCategory] = (
    types.MappingProxyType(
        {
            ("pull_request", "opened"): NotificationCategory.PR_LIFECYCLE,
            ("pull_request", "closed"): NotificationCategory.PR_LIFECYCLE,
            ("pull_request", "reopened"): NotificationCategory.PR_LIFECYCLE,
            ("pull_request_review", "submitted"): NotificationCategory.PR_REVIEWS,
            ("pull_request_review", "dismissed"): NotificationCategory.PR_REVIEWS,
            ("issue_comment", "created"): NotificationCategory.PR_COMMENTS,
            (
                "pull_request_review_comment",
                "created",
            ): NotificationCategory.PR_COMMENTS,
            ("check_run", "completed"): NotificationCategory.CHECK_RESULTS,
            ("check_suite", "completed"): NotificationCategory.CHECK_RESULTS,
            ("pull_request", "synchronize"): NotificationCategory.PR_UPDATES,
            ("pull_request", "edited"): NotificationCategory.PR_UPDATES,
            ("pull_request", "ready_for_review"): NotificationCategory.PR_UPDATES,
            ("pull_request", "review_requested"): NotificationCategory.PR_UPDATES,
            ("deployment", ANY_ACTION): NotificationCategory.DEPLOYMENTS,
            ("deployment_status", ANY_ACTION): NotificationCategory.DEPLOYMENTS,
            ("pull_request", "ready_to_merge"): NotificationCategory.READY_TO_MERGE,
        }
    )
)


def categorize(event_type: str, action: str) -> NotificationCategory | None:
    """Return the category for an event, or ``None`` when it is unmapped."""
    category = _CATEGORY_TABLE.get((event_type, action))
    if category is None:
        category = _CATEGORY_TABLE.get((event_type, ANY_ACTION))
    return category


class NotificationGate:
    """Decide whether an event type and action may produce a notification."""

    def __init__(self, config: NotificationConfig) -> None:
        """Bind the gate to a configuration snapshot."""
        self._switches: dict[NotificationCategory, bool] = {
            NotificationCategory.PR_LIFECYCLE: config.pr_lifecycle,
            NotificationCategory.PR_REVIEWS: config.pr_reviews,
            NotificationCategory.PR_COMMENTS: config.pr_comments,
            NotificationCategory.CHECK_RESULTS: config.check_results,
            NotificationCategory.PR_UPDATES: config.pr_updates,
            NotificationCategory.DEPLOYMENTS: config.deployments,
            NotificationCategory.READY_TO_MERGE: config.ready_to_merge,
        }

    def is_enabled(self, event_type: str, action: str) -> bool:
        """Return True when the event's category switch is on.

        Unknown ``(event_type, action)`` pairs are suppressed.
        """
        category = categorize(event_type, action)
        if category is None:
            log_debug(
                logger,
                "No notification category for %s.%s; suppressing",
                event_type,
                action,
            )
            return False
        return self._switches[category]

    def category_enabled(self, category: NotificationCategory) -> bool:
        """Return the switch value for ``category``."""
        return self._switches[category]

    def enabled_categories(self) -> tuple[NotificationCategory, ...]:
        """Return the enabled categories in declaration order."""
        return tuple(
            category for category in NotificationCategory if self._switches[category]
        )
