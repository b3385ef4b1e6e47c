"""Aggregate every check run on a commit into one summary.

A ``check_run.completed`` event only describes the check that just finished.
Herald re-fetches all check runs for the commit and reports the combined
state, so each completion produces one email showing the whole picture.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.github.models import CheckRun

PASSED_CONCLUSIONS = frozenset({"success"})
FAILED_CONCLUSIONS = frozenset({"failure", "timed_out", "action_required"})
SKIPPED_CONCLUSIONS = frozenset({"skipped", "neutral", "cancelled"})


@dataclasses.dataclass(frozen=True, slots=True)
class CheckRunSummary:
    """Classified check runs for one commit.

    Completed runs whose conclusion matches none of the known groups are
    counted in ``completed_count`` but listed in no group.
    """

    triggering_check: str
    passed: tuple[CheckRun, ...] = ()
    failed: tuple[CheckRun, ...] = ()
    skipped: tuple[CheckRun, ...] = ()
    in_progress: tuple[CheckRun, ...] = ()
    completed_count: int = 0

    @property
    def total(self) -> int:
        """Number of check runs considered."""
        return self.completed_count + len(self.in_progress)

    @property
    def in_progress_count(self) -> int:
        """Number of check runs not yet completed."""
        return len(self.in_progress)

    @property
    def all_completed(self) -> bool:
        """True when no check run is still queued or running."""
        return self.in_progress_count == 0


def summarize_check_runs(
    check_runs: cabc.Iterable[CheckRun], triggering_check_name: str
) -> CheckRunSummary:
    """Partition ``check_runs`` by status and classify completed conclusions.

    Parameters
    ----------
    check_runs
        Every check run reported for the commit.
    triggering_check_name
        Name of the check whose completion caused the aggregation.

    Returns
    -------
    CheckRunSummary
        Runs grouped into passed, failed, skipped and in progress.

    """
    passed: list[CheckRun] = []
    failed: list[CheckRun] = []
    skipped: list[CheckRun] = []
    in_progress: list[CheckRun] = []
    completed = 0
    for run in check_runs:
        if run.status != "completed":
            in_progress.append(run)
            continue
        completed += 1
        if run.conclusion in PASSED_CONCLUSIONS:
            passed.append(run)
        elif run.conclusion in FAILED_CONCLUSIONS:
            failed.append(run)
        elif run.conclusion in SKIPPED_CONCLUSIONS:
            skipped.append(run)
    return CheckRunSummary(
        triggering_check=triggering_check_name,
        passed=tuple(passed),
        failed=tuple(failed),
        skipped=tuple(skipped),
        in_progress=tuple(in_progress),
        completed_count=completed,
    )


def _checks(count: int) -> str:
    return "check" if count == 1 else "checks"


def format_check_run_subject(summary: CheckRunSummary) -> str:
    """Return the subject line for an aggregated check notification.

    When everything has finished the subject leads with failures, then
    passes. While checks are still running it reports the triggering check
    and how many remain, flagged by the worst result so far.
    """
    failed = len(summary.failed)
    passed = len(summary.passed)
    if summary.all_completed:
        if failed:
            return f"❌ {failed} {_checks(failed)} failed, {passed} passed"
        if passed:
            return f"✅ All {passed} {_checks(passed)} passed"
        return "⚪ All checks completed"

    if failed:
        icon = "❌"
    elif passed:
        icon = "🟡"
    else:
        icon = "🔄"
    return (
        f"{icon} {summary.triggering_check} completed "
        f"({summary.in_progress_count} still running)"
    )


def _render_group(lines: list[str], heading: str, runs: tuple[CheckRun, ...]) -> None:
    if not runs:
        return
    lines.append("")
    lines.append(f"{heading} ({len(runs)}):")
    for run in runs:
        suffix = f" [{run.conclusion}]" if run.conclusion else f" [{run.status}]"
        lines.append(f"- {run.name}{suffix}")


def format_check_run_description(
    summary: CheckRunSummary, *, triggering_summary: str | None = None
) -> str:
    """Render a plain text overview of the aggregated check state."""
    lines = [f"Check run summary for {summary.triggering_check}"]
    if triggering_summary:
        lines.extend(["", triggering_summary.strip()])
    lines.append("")
    if summary.all_completed:
        lines.append(f"All {summary.total} {_checks(summary.total)} completed.")
    else:
        lines.append(f"{summary.in_progress_count} still running.")
    lines.append(
        f"Status overview: {len(summary.passed)} passed, {len(summary.failed)} "
        f"failed, {len(summary.skipped)} skipped, {summary.in_progress_count} "
        "in progress."
    )
    _render_group(lines, "Failed checks", summary.failed)
    _render_group(lines, "Passed checks", summary.passed)
    _render_group(lines, "Skipped checks", summary.skipped)
    _render_group(lines, "Still running", summary.in_progress)
    return "\n".join(lines)
