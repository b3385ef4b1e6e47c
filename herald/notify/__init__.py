"""Notification decision engine.

Public API
----------
NotificationConfig
    Environment driven notification switches and recipient settings.
NotificationGate
    Category switches for ``event_type.action`` pairs.
RecipientResolver
    Owner-first recipient resolution for a pull request.
format_status
    Status to label, emoji and colour mapping.
compose_email
    Plain text and HTML rendering of a notification.
summarize_check_runs
    Aggregation of every check run on a commit.
ReadyToMergeEvaluator
    Detection of pull requests that just became mergeable.
EmailDispatcher
    Bounded concurrency fan-out to recipients.
NotificationService
    Gate, resolve, compose and dispatch in one call.
"""

from __future__ import annotations

from .categories import NotificationCategory, NotificationGate, categorize
from .checks import CheckRunSummary, summarize_check_runs
from .config import NotificationConfig
from .content import EmailContent, NotificationData, compose_email
from .dedup import EVENT_DEDUP_WINDOW, READY_TO_MERGE_DEDUP_WINDOW, TimeWindowCache
from .dispatch import EmailDispatcher, is_valid_email
from .observability import NotificationEventLogger, NotificationEventType
from .readiness import ReadinessResult, ReadinessTrigger, ReadyToMergeEvaluator
from .recipients import EmailLookup, EmailSource, RecipientResolver, RecipientSet
from .results import (
    DeliveryResult,
    DispatchResult,
    EventResult,
    NotificationOutcome,
    NotificationResult,
)
from .service import NotificationService
from .status import StatusInfo, format_pr_status, format_status

__all__ = [
    "EVENT_DEDUP_WINDOW",
    "READY_TO_MERGE_DEDUP_WINDOW",
    "CheckRunSummary",
    "DeliveryResult",
    "DispatchResult",
    "EmailContent",
    "EmailDispatcher",
    "EmailLookup",
    "EmailSource",
    "EventResult",
    "NotificationCategory",
    "NotificationConfig",
    "NotificationData",
    "NotificationEventLogger",
    "NotificationEventType",
    "NotificationGate",
    "NotificationOutcome",
    "NotificationResult",
    "NotificationService",
    "ReadinessResult",
    "ReadinessTrigger",
    "ReadyToMergeEvaluator",
    "RecipientResolver",
    "RecipientSet",
    "StatusInfo",
    "TimeWindowCache",
    "categorize",
    "compose_email",
    "format_pr_status",
    "format_status",
    "is_valid_email",
    "summarize_check_runs",
]
