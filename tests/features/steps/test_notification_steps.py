"""Behavioural tests for webhook notifications and ready-to-merge alerts."""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ

import falcon.testing
import msgspec
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from herald.api.app import WEBHOOK_ROUTE, AppDependencies, create_app
from herald.api.webhooks.signature import compute_signature
from herald.handlers.router import EventRouter, build_event_router
from herald.notify.config import NotificationConfig
from tests.unit.fakes import (
    FakeClock,
    FakeGitHubClient,
    RecordingEmailSender,
    make_event,
    make_pull_request,
    pull_request_payload,
    repository_payload,
)

READY_TO_MERGE_TYPE = "pull_request.ready_to_merge"


class NotificationContext(typ.TypedDict, total=False):
    """Shared state used by BDD steps."""

    github: FakeGitHubClient
    sender: RecordingEmailSender
    clock: FakeClock
    config_overrides: dict[str, bool]
    owners: dict[int, str]
    router: EventRouter
    secret: str
    response: falcon.testing.Result


@scenario(
    "../ready_to_merge.feature",
    "An approval on a clean pull request notifies the owner once",
)
def test_ready_to_merge_once() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@scenario("../ready_to_merge.feature", "A blocked pull request is not reported")
def test_blocked_not_reported() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@scenario("../ready_to_merge.feature", "The suppression window expires")
def test_suppression_window_expires() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@scenario(
    "../webhook_notifications.feature",
    "A signed pull request delivery emails the owner",
)
def test_signed_delivery() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@scenario("../webhook_notifications.feature", "A forged delivery is rejected")
def test_forged_delivery() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@scenario("../webhook_notifications.feature", "Disabled categories send nothing")
def test_disabled_category() -> None:
    """Behavioural test wrapper for pytest-bdd."""


@pytest.fixture
def notification_context() -> NotificationContext:
    """Provision fakes for each scenario."""
    return {
        "github": FakeGitHubClient(),
        "sender": RecordingEmailSender(),
        "clock": FakeClock(),
        "config_overrides": {},
        "owners": {},
    }


def _router(context: NotificationContext) -> EventRouter:
    if "router" not in context:
        context["router"] = build_event_router(
            github=context["github"],
            config=NotificationConfig(**context["config_overrides"]),
            sender=context["sender"],
            clock=context["clock"],
        )
    return context["router"]


def _pr_payload(context: NotificationContext, number: int) -> dict[str, typ.Any]:
    return pull_request_payload(number=number, owner=context["owners"][number])


@given(parsers.parse('a Herald app with webhook secret "{secret}"'))
def given_app(notification_context: NotificationContext, secret: str) -> None:
    """Record the webhook secret; the app is built on first delivery."""
    notification_context["secret"] = secret


@given(parsers.parse('notifications for "{category}" are disabled'))
def given_category_disabled(
    notification_context: NotificationContext, category: str
) -> None:
    """Switch one notification category off."""
    notification_context["config_overrides"][category] = False


@given(
    parsers.parse(
        'pull request {number:d} is owned by "{login}" with email "{email}"'
    )
)
def given_owner(
    notification_context: NotificationContext, number: int, login: str, email: str
) -> None:
    """Register the owner's public profile and the pull request."""
    notification_context["github"].add_user(login, email)
    notification_context["owners"][number] = login
    notification_context["github"].pull_requests[number] = make_pull_request(
        number, owner=login
    )


@given(parsers.parse('GitHub reports pull request {number:d} as "{state}"'))
def given_mergeable_state(
    notification_context: NotificationContext, number: int, state: str
) -> None:
    """Set the mergeable state returned when the pull request is re-fetched."""
    notification_context["github"].pull_requests[number] = make_pull_request(
        number, owner=notification_context["owners"][number], mergeable_state=state
    )


@when(parsers.parse("an approving review is submitted for pull request {number:d}"))
def when_review_approved(
    notification_context: NotificationContext, number: int
) -> None:
    """Process an approving pull_request_review event."""
    event = make_event(
        "pull_request_review",
        "submitted",
        pull_request=_pr_payload(notification_context, number),
        review={"state": "approved", "user": {"login": "hubot"}},
    )
    asyncio.run(_router(notification_context).process(event))


@when(parsers.parse("a check run on pull request {number:d} succeeds"))
def when_check_run_succeeds(
    notification_context: NotificationContext, number: int
) -> None:
    """Process a successful check_run.completed event."""
    check_id = len(notification_context["sender"].sent) + 1
    event = make_event(
        "check_run",
        "completed",
        check_run={
            "id": check_id,
            "name": "tests",
            "status": "completed",
            "conclusion": "success",
            "head_sha": "abc1234def",
            "pull_requests": [{"number": number}],
        },
    )
    asyncio.run(_router(notification_context).process(event))


@when(parsers.parse("{minutes:d} minutes pass"))
def when_time_passes(notification_context: NotificationContext, minutes: int) -> None:
    """Advance the clock shared by the dedup caches."""
    notification_context["clock"].advance(dt.timedelta(minutes=minutes))


def _deliver(
    context: NotificationContext,
    event_type: str,
    action: str,
    number: int,
    *,
    signed: bool,
) -> None:
    client = falcon.testing.TestClient(
        create_app(
            AppDependencies(
                processor=_router(context),
                webhook_secret=context["secret"],
                process_inline=True,
            )
        )
    )
    body = msgspec.json.encode(
        {
            "action": action,
            "pull_request": _pr_payload(context, number),
            "repository": repository_payload(),
            "sender": {"login": context["owners"][number]},
        }
    )
    headers = {"X-GitHub-Event": event_type, "X-GitHub-Delivery": "bdd-1"}
    if signed:
        headers["X-Hub-Signature-256"] = compute_signature(context["secret"], body)
    context["response"] = client.simulate_post(
        WEBHOOK_ROUTE, body=body, headers=headers
    )


@when(
    parsers.parse(
        'GitHub delivers a signed "{event_type}" "{action}" event for '
        "pull request {number:d}"
    )
)
def when_signed_delivery(
    notification_context: NotificationContext,
    event_type: str,
    action: str,
    number: int,
) -> None:
    """POST a correctly signed delivery."""
    _deliver(notification_context, event_type, action, number, signed=True)


@when(
    parsers.parse(
        'GitHub delivers an unsigned "{event_type}" "{action}" event for '
        "pull request {number:d}"
    )
)
def when_unsigned_delivery(
    notification_context: NotificationContext,
    event_type: str,
    action: str,
    number: int,
) -> None:
    """POST a delivery without a signature."""
    _deliver(notification_context, event_type, action, number, signed=False)


@then(parsers.parse("the delivery is acknowledged with status {status:d}"))
def then_status(notification_context: NotificationContext, status: int) -> None:
    """Check the HTTP status returned to GitHub."""
    assert notification_context["response"].status_code == status


@then(parsers.parse('"{email}" receives an email with subject "{subject}"'))
def then_email_subject(
    notification_context: NotificationContext, email: str, subject: str
) -> None:
    """Check a specific email reached the recipient."""
    sent = [
        message.subject
        for message in notification_context["sender"].sent
        if message.to == email
    ]
    assert sent == [subject]


@then("no email is sent")
def then_no_email(notification_context: NotificationContext) -> None:
    """Check that nothing was delivered."""
    assert notification_context["sender"].sent == []


def _ready_emails(context: NotificationContext, email: str | None = None) -> list[str]:
    return [
        message.subject
        for message in context["sender"].sent
        if message.headers.get("X-Notification-Type") == READY_TO_MERGE_TYPE
        and (email is None or message.to == email)
    ]


@then(parsers.re(r'"(?P<email>[^"]+)" receives (?P<count>\d+) ready-to-merge emails?'))
def then_ready_count(
    notification_context: NotificationContext, email: str, count: str
) -> None:
    """Count ready-to-merge emails for one recipient."""
    assert len(_ready_emails(notification_context, email)) == int(count)


@then(parsers.parse('the ready-to-merge subject mentions "{label}"'))
def then_ready_subject(notification_context: NotificationContext, label: str) -> None:
    """Check the label of the latest ready-to-merge email."""
    subject = _ready_emails(notification_context)[-1]
    assert f" {label}: PR #" in subject
