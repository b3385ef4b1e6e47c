"""Typed GitHub models shared by webhook handlers and the REST client.

The structs mirror the subset of the GitHub REST and webhook payload shapes
Herald reads. Unknown fields are ignored on decode, so the same struct can be
built from a webhook payload fragment (``msgspec.convert``) or a REST response
body (``msgspec.json.decode``).
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import msgspec


class MergeableState(enum.StrEnum):
    """Values GitHub reports in ``pull_request.mergeable_state``."""

    CLEAN = "clean"
    UNSTABLE = "unstable"
    BLOCKED = "blocked"
    BEHIND = "behind"
    DIRTY = "dirty"
    DIVERGENT = "divergent"
    DRAFT = "draft"
    HAS_HOOKS = "has_hooks"
    UNKNOWN = "unknown"


class GitHubUser(msgspec.Struct, kw_only=True):
    """A GitHub account as embedded in payloads or returned by ``/users``."""

    login: str
    id: int | None = None
    email: str | None = None
    name: str | None = None
    type: str | None = None


class GitRef(msgspec.Struct, kw_only=True):
    """Head or base reference of a pull request."""

    ref: str = ""
    sha: str = ""


class PullRequest(msgspec.Struct, kw_only=True):
    """Pull request snapshot.

    ``mergeable_state`` is only meaningful on a freshly fetched copy; webhook
    payload copies are routinely stale or ``None``.
    """

    number: int
    title: str = ""
    html_url: str = ""
    state: str = "open"
    body: str | None = None
    user: GitHubUser | None = None
    draft: bool = False
    merged: bool = False
    merged_by: GitHubUser | None = None
    mergeable_state: str | None = None
    assignees: list[GitHubUser] = msgspec.field(default_factory=list)
    requested_reviewers: list[GitHubUser] = msgspec.field(default_factory=list)
    head: GitRef | None = None

    @property
    def owner_login(self) -> str | None:
        """Login of the account that opened the pull request."""
        return self.user.login if self.user is not None else None

    @property
    def is_open(self) -> bool:
        """Return True while the pull request is open and unmerged."""
        return self.state == "open" and not self.merged


class PullRequestLink(msgspec.Struct, kw_only=True):
    """Pull request reference embedded in check run and suite payloads."""

    number: int


class CheckRunOutput(msgspec.Struct, kw_only=True):
    """Human readable output attached to a check run."""

    title: str | None = None
    summary: str | None = None


class CheckRun(msgspec.Struct, kw_only=True):
    """A single check run for a commit."""

    id: int
    name: str
    status: str
    conclusion: str | None = None
    head_sha: str = ""
    html_url: str | None = None
    details_url: str | None = None
    output: CheckRunOutput | None = None
    pull_requests: list[PullRequestLink] = msgspec.field(default_factory=list)


class CheckRunPage(msgspec.Struct, kw_only=True):
    """One page of ``GET /repos/{owner}/{repo}/commits/{ref}/check-runs``."""

    total_count: int
    check_runs: list[CheckRun] = msgspec.field(default_factory=list)


class CheckSuiteApp(msgspec.Struct, kw_only=True):
    """GitHub App that produced a check suite."""

    name: str = ""


class CheckSuite(msgspec.Struct, kw_only=True):
    """Check suite summary from a ``check_suite`` webhook."""

    id: int
    status: str | None = None
    conclusion: str | None = None
    head_sha: str = ""
    app: CheckSuiteApp | None = None
    pull_requests: list[PullRequestLink] = msgspec.field(default_factory=list)


class Review(msgspec.Struct, kw_only=True):
    """Pull request review from a ``pull_request_review`` webhook."""

    state: str
    user: GitHubUser | None = None
    body: str | None = None
    html_url: str | None = None


class Comment(msgspec.Struct, kw_only=True):
    """Issue or review comment from a comment webhook."""

    body: str = ""
    user: GitHubUser | None = None
    html_url: str | None = None
    path: str | None = None


class IssueRef(msgspec.Struct, kw_only=True):
    """Issue from an ``issue_comment`` webhook.

    ``pull_request`` is present only when the issue is a pull request.
    """

    number: int
    title: str = ""
    pull_request: dict[str, typ.Any] | None = None


class Deployment(msgspec.Struct, kw_only=True):
    """Deployment from ``deployment`` and ``deployment_status`` webhooks."""

    id: int
    sha: str
    ref: str = ""
    environment: str = ""
    description: str | None = None
    creator: GitHubUser | None = None


class DeploymentStatus(msgspec.Struct, kw_only=True):
    """Status update attached to a deployment."""

    state: str
    target_url: str | None = None
    log_url: str | None = None
    environment_url: str | None = None
    description: str | None = None
    updated_at: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Repository identity taken from a webhook payload."""

    owner: str
    name: str

    @property
    def slug(self) -> str:
        """Return ``owner/name``."""
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> RepositoryRef | None:
        """Extract the repository from a webhook payload, if present."""
        repository = payload.get("repository")
        if not isinstance(repository, dict):
            return None
        owner = repository.get("owner")
        owner_login = owner.get("login") if isinstance(owner, dict) else None
        name = repository.get("name")
        if not isinstance(owner_login, str) or not isinstance(name, str):
            return None
        return cls(owner=owner_login, name=name)
