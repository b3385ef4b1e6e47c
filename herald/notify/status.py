"""Map GitHub statuses, conclusions and PR actions to display metadata."""

from __future__ import annotations

import dataclasses
import types
import typing as typ


@dataclasses.dataclass(frozen=True, slots=True)
class StatusInfo:
    """Label, emoji and accent colour for one status."""

    label: str
    emoji: str
    color: str

    @property
    def display(self) -> str:
        """Return ``"<emoji> <label>"`` for subject lines and headers."""
        return f"{self.emoji} {self.label}"


UNKNOWN_STATUS = StatusInfo("UNKNOWN", "❓", "#6c757d")

_GREEN = "#28a745"
_RED = "#dc3545"
_GREY = "#6c757d"
_BLUE = "#007bff"
_GITHUB_BLUE = "#0366d6"

_STATUS_TABLE: typ.Mapping[str, StatusInfo] = types.MappingProxyType(
    {
        # check run conclusions and statuses
        "success": StatusInfo("SUCCESS", "✅", _GREEN),
        "failure": StatusInfo("FAILURE", "❌", _RED),
        "cancelled": StatusInfo("CANCELLED", "⏹️", _GREY),
        "timed_out": StatusInfo("TIMED OUT", "⏰", "#fd7e14"),
        "action_required": StatusInfo("ACTION REQUIRED", "⚠️", "#ffc107"),
        "neutral": StatusInfo("NEUTRAL", "ℹ️", "#17a2b8"),
        "skipped": StatusInfo("SKIPPED", "⏭️", _GREY),
        "pending": StatusInfo("PENDING", "🔄", _BLUE),
        "queued": StatusInfo("QUEUED", "📋", _BLUE),
        "in_progress": StatusInfo("IN PROGRESS", "🔄", _BLUE),
        "completed": StatusInfo("COMPLETED", "✅", _GREEN),
        # pull request lifecycle
        "opened": StatusInfo("OPENED", "🎉", _GREEN),
        "edited": StatusInfo("EDITED", "✏️", _GITHUB_BLUE),
        "closed": StatusInfo("CLOSED", "❌", _RED),
        "merged": StatusInfo("MERGED", "🎉", "#6f42c1"),
        "reopened": StatusInfo("REOPENED", "🔄", _GITHUB_BLUE),
        "synchronize": StatusInfo("UPDATED", "🔄", _GITHUB_BLUE),
        "ready_for_review": StatusInfo("READY FOR REVIEW", "👀", _GREEN),
        "review_requested": StatusInfo("REVIEW REQUESTED", "👥", _GITHUB_BLUE),
        "ready_to_merge": StatusInfo("READY TO MERGE", "🚀", _GREEN),
        "submitted": StatusInfo("SUBMITTED", "📝", _GITHUB_BLUE),
        "dismissed": StatusInfo("DISMISSED", "🚫", _RED),
        "created": StatusInfo("CREATED", "💬", _GITHUB_BLUE),
        "push": StatusInfo("PUSHED", "📝", _GITHUB_BLUE),
        # deployment states and review verdicts
        "error": StatusInfo("ERROR", "❌", _RED),
        "approved": StatusInfo("APPROVED", "✅", _GREEN),
        "changes_requested": StatusInfo("CHANGES REQUESTED", "🔁", "#fd7e14"),
        "commented": StatusInfo("COMMENTED", "💬", _GITHUB_BLUE),
    }
)

_EVENT_EMOJIS: typ.Mapping[str, str] = types.MappingProxyType(
    {
        "pull_request.opened": "🎉",
        "pull_request.closed": "❌",
        "pull_request.merged": "🎉",
        "pull_request.edited": "✏️",
        "pull_request.reopened": "🔄",
        "pull_request.synchronize": "🔄",
        "pull_request.ready_for_review": "👀",
        "pull_request.review_requested": "👥",
        "pull_request.ready_to_merge": "🚀",
        "pull_request_review.submitted": "📝",
        "pull_request_review.dismissed": "🚫",
        "pull_request_review_comment.created": "💬",
        "issue_comment.created": "💬",
        "check_run.completed": "🔍",
        "check_suite.completed": "✅",
        "deployment": "🚀",
        "deployment_status": "🚀",
        "push": "📝",
    }
)

DEFAULT_EVENT_EMOJI = "📢"


def format_status(
    status: str | None,
    conclusion: str | None = None,
    emoji_override: str | None = None,
) -> StatusInfo:
    """Resolve display metadata for a status.

    A non-empty ``conclusion`` takes precedence over ``status``. Keys are
    matched case-insensitively, so review states such as ``APPROVED`` resolve
    too. Unknown keys resolve to :data:`UNKNOWN_STATUS`; the function never
    raises.

    Parameters
    ----------
    status
        Bare status or action key, for example ``"in_progress"`` or
        ``"opened"``.
    conclusion
        Optional check conclusion, for example ``"failure"``.
    emoji_override
        Replaces the emoji after lookup while keeping label and colour.

    Returns
    -------
    StatusInfo
        The resolved entry.

    """
    key = (conclusion or status or "").lower()
    info = _STATUS_TABLE.get(key, UNKNOWN_STATUS)
    if emoji_override:
        return dataclasses.replace(info, emoji=emoji_override)
    return info


def event_emoji(event_type: str, action: str | None = None) -> str:
    """Return the emoji used in subjects for ``event_type.action``."""
    if action:
        emoji = _EVENT_EMOJIS.get(f"{event_type}.{action}")
        if emoji is not None:
            return emoji
    return _EVENT_EMOJIS.get(event_type, DEFAULT_EVENT_EMOJI)


def format_pr_status(action: str, *, merged: bool = False) -> StatusInfo:
    """Return display metadata for a pull request action.

    A ``closed`` action on a merged pull request is reported as ``MERGED``.
    Other actions use the status table with the per-event emoji.
    """
    if action == "closed" and merged:
        return format_status("merged")
    return format_status(action, emoji_override=event_emoji("pull_request", action))
