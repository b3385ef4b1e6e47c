"""In-memory collaborators shared by unit and feature tests."""

from __future__ import annotations

import collections
import datetime as dt
import typing as typ

import msgspec

from herald.github.errors import GitHubAPIError
from herald.github.models import CheckRun, GitHubUser, PullRequest
from herald.handlers.base import HandlerContext, InboundEvent
from herald.mail.errors import EmailDeliveryError
from herald.notify.categories import NotificationGate
from herald.notify.dedup import (
    EVENT_DEDUP_WINDOW,
    READY_TO_MERGE_DEDUP_WINDOW,
    TimeWindowCache,
)
from herald.notify.dispatch import EmailDispatcher
from herald.notify.readiness import ReadyToMergeEvaluator
from herald.notify.recipients import RecipientResolver
from herald.notify.results import EventResult
from herald.notify.service import NotificationService

if typ.TYPE_CHECKING:
    from herald.github.models import RepositoryRef
    from herald.mail.sender import EmailMessageSpec
    from herald.notify.config import NotificationConfig

BASE_TIME = dt.datetime(2099, 1, 1, 12, 0, tzinfo=dt.UTC)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, now: dt.datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, delta: dt.timedelta) -> None:
        """Move the clock forward by ``delta``."""
        self.now += delta


class FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message

    def messages(self, level: str) -> list[str]:
        """Return messages logged at ``level``."""
        return [message for lvl, message, _, _ in self.calls if lvl == level]


class FakeGitHubClient:
    """GitHub client backed by dictionaries.

    ``pull_requests`` maps a number to either one snapshot or a list of
    snapshots returned in turn (the last one repeats), which models
    GitHub settling ``mergeable_state`` between fetches.
    """

    def __init__(self) -> None:
        self.users: dict[str, GitHubUser] = {}
        self.pull_requests: dict[int, PullRequest | list[PullRequest]] = {}
        self.commit_pulls: dict[str, list[PullRequest]] = {}
        self.check_runs: dict[str, list[CheckRun]] = {}
        self.failing: set[str] = set()
        self.calls: collections.Counter[str] = collections.Counter()

    def add_user(self, login: str, email: str | None = None) -> None:
        """Register a user profile, with or without a public email."""
        self.users[login] = GitHubUser(login=login, email=email)

    def _maybe_fail(self, method: str) -> None:
        self.calls[method] += 1
        if method in self.failing:
            msg = f"{method} failed"
            raise GitHubAPIError(msg, status_code=502)

    async def get_user(self, login: str) -> GitHubUser:
        self._maybe_fail("get_user")
        user = self.users.get(login)
        if user is None:
            raise GitHubAPIError.http_error(404, f"/users/{login}")
        return user

    async def get_pull_request(self, repo: RepositoryRef, number: int) -> PullRequest:
        self._maybe_fail("get_pull_request")
        snapshot = self.pull_requests.get(number)
        if snapshot is None:
            raise GitHubAPIError.http_error(
                404, f"/repos/{repo.slug}/pulls/{number}"
            )
        if isinstance(snapshot, list):
            return snapshot.pop(0) if len(snapshot) > 1 else snapshot[0]
        return snapshot

    async def list_pull_requests_for_commit(
        self, repo: RepositoryRef, sha: str
    ) -> list[PullRequest]:
        self._maybe_fail("list_pull_requests_for_commit")
        return list(self.commit_pulls.get(sha, []))

    async def list_check_runs_for_ref(
        self, repo: RepositoryRef, ref: str
    ) -> list[CheckRun]:
        self._maybe_fail("list_check_runs_for_ref")
        return list(self.check_runs.get(ref, []))


class RecordingProcessor:
    """Webhook processor that records the events it receives."""

    def __init__(self) -> None:
        self.events: list[InboundEvent] = []

    async def process(self, event: InboundEvent) -> EventResult:
        self.events.append(event)
        return EventResult.ignored(event.event_type, event.action, "recorded")


class RecordingEmailSender:
    """Email sender that records messages and fails for chosen addresses."""

    def __init__(self, *, failing: typ.Iterable[str] = ()) -> None:
        self.sent: list[EmailMessageSpec] = []
        self.failing = {address.lower() for address in failing}

    async def send(self, message: EmailMessageSpec) -> str:
        if message.to.lower() in self.failing:
            raise EmailDeliveryError.from_exception(
                message.to, ConnectionRefusedError("connection refused")
            )
        self.sent.append(message)
        return f"<{len(self.sent)}@test.herald>"

    @property
    def recipients(self) -> list[str]:
        """Addresses of delivered messages in send order."""
        return [message.to for message in self.sent]

    @property
    def subjects(self) -> list[str]:
        """Subjects of delivered messages in send order."""
        return [message.subject for message in self.sent]


def make_pull_request(  # noqa: PLR0913
    number: int = 42,
    *,
    owner: str | None = "octocat",
    title: str = "Add widget support",
    mergeable_state: str | None = None,
    state: str = "open",
    merged: bool = False,
    draft: bool = False,
    assignees: typ.Sequence[str] = (),
    reviewers: typ.Sequence[str] = (),
    body: str | None = None,
    merged_by: str | None = None,
    head_sha: str = "abc1234def",
) -> PullRequest:
    """Build a pull request snapshot."""
    return msgspec.convert(
        {
            "number": number,
            "title": title,
            "html_url": f"https://github.com/acme/widgets/pull/{number}",
            "state": state,
            "body": body,
            "user": {"login": owner} if owner is not None else None,
            "draft": draft,
            "merged": merged,
            "merged_by": {"login": merged_by} if merged_by is not None else None,
            "mergeable_state": mergeable_state,
            "assignees": [{"login": login} for login in assignees],
            "requested_reviewers": [{"login": login} for login in reviewers],
            "head": {"ref": "feature", "sha": head_sha},
        },
        type=PullRequest,
    )


def make_check_run(  # noqa: PLR0913
    check_id: int,
    name: str,
    *,
    status: str = "completed",
    conclusion: str | None = "success",
    head_sha: str = "abc1234def",
    pr_numbers: typ.Sequence[int] = (42,),
) -> CheckRun:
    """Build a check run; queued and running checks have no conclusion."""
    return msgspec.convert(
        {
            "id": check_id,
            "name": name,
            "status": status,
            "conclusion": conclusion if status == "completed" else None,
            "head_sha": head_sha,
            "html_url": f"https://github.com/acme/widgets/runs/{check_id}",
            "pull_requests": [{"number": number} for number in pr_numbers],
        },
        type=CheckRun,
    )


def pull_request_payload(**kwargs: typ.Any) -> dict[str, typ.Any]:
    """Return a webhook ``pull_request`` object built by make_pull_request."""
    return msgspec.to_builtins(make_pull_request(**kwargs))


def check_run_payload(
    check_id: int, name: str, **kwargs: typ.Any
) -> dict[str, typ.Any]:
    """Return a webhook ``check_run`` object built by make_check_run."""
    return msgspec.to_builtins(make_check_run(check_id, name, **kwargs))


def repository_payload() -> dict[str, typ.Any]:
    """Return the ``repository`` object of a webhook payload."""
    return {
        "name": "widgets",
        "full_name": "acme/widgets",
        "owner": {"login": "acme"},
        "html_url": "https://github.com/acme/widgets",
    }


def make_event(
    event_type: str, action: str, **payload: typ.Any
) -> InboundEvent:
    """Build an inbound event whose payload includes the repository."""
    return InboundEvent(
        event_type=event_type,
        action=action,
        payload={"repository": repository_payload(), **payload},
        delivery_id="delivery-1",
    )


class NotificationStack(typ.NamedTuple):
    """Wired notification components over fakes."""

    github: FakeGitHubClient
    sender: RecordingEmailSender
    clock: FakeClock
    service: NotificationService
    evaluator: ReadyToMergeEvaluator
    context: HandlerContext


def build_stack(
    config: NotificationConfig,
    *,
    github: FakeGitHubClient | None = None,
    sender: RecordingEmailSender | None = None,
    clock: FakeClock | None = None,
) -> NotificationStack:
    """Wire a notification service, evaluator and handler context."""
    github = github or FakeGitHubClient()
    sender = sender or RecordingEmailSender()
    clock = clock or FakeClock()
    service = NotificationService(
        gate=NotificationGate(config),
        resolver=RecipientResolver(github, config),
        dispatcher=EmailDispatcher(sender),
    )
    evaluator = ReadyToMergeEvaluator(
        github=github,
        service=service,
        cache=TimeWindowCache(READY_TO_MERGE_DEDUP_WINDOW, clock=clock),
    )
    context = HandlerContext(
        github=github,
        service=service,
        evaluator=evaluator,
        event_cache=TimeWindowCache(EVENT_DEDUP_WINDOW, clock=clock),
    )
    return NotificationStack(github, sender, clock, service, evaluator, context)
