"""Unit tests for the notification service."""

from __future__ import annotations

import typing as typ

import pytest

from herald.github.models import RepositoryRef
from herald.notify.config import NotificationConfig
from herald.notify.content import NotificationData
from herald.notify.results import NotificationOutcome
from herald.notify.service import NO_RECIPIENTS_REASON
from herald.notify.status import format_pr_status
from tests.unit.fakes import RecordingEmailSender, build_stack, make_pull_request

if typ.TYPE_CHECKING:
    from herald.notify.results import NotificationResult
    from tests.unit.fakes import NotificationStack

DATA = NotificationData(
    subject="🎉 New Pull Request #42: Add widget support",
    description="PR owner octocat opened a new pull request",
    details_url=None,
    status=format_pr_status("opened"),
)


async def _send_opened(
    stack: NotificationStack, repository: RepositoryRef, **kwargs: typ.Any
) -> NotificationResult:
    return await stack.service.send_pr_notification(
        repository=repository,
        pull_request=make_pull_request(),
        event_type="pull_request",
        action="opened",
        data=DATA,
        **kwargs,
    )


class TestSendPrNotification:
    """Tests for NotificationService.send_pr_notification."""

    @pytest.mark.asyncio
    async def test_disabled_category_skips_everything(
        self, repository: RepositoryRef
    ) -> None:
        """A gated-off category makes no API calls and sends nothing."""
        stack = build_stack(NotificationConfig(pr_lifecycle=False))

        result = await _send_opened(stack, repository)

        assert result.outcome is NotificationOutcome.DISABLED
        assert result.pr_number == 42
        assert not stack.github.calls, "no lookups should happen when disabled"
        assert stack.sender.sent == []

    @pytest.mark.asyncio
    async def test_no_recipients(self, repository: RepositoryRef) -> None:
        """An unresolvable owner and no extras yields NO_RECIPIENTS."""
        stack = build_stack(NotificationConfig())
        stack.github.add_user("octocat")

        result = await _send_opened(stack, repository)

        assert result.outcome is NotificationOutcome.NO_RECIPIENTS
        assert result.reason == NO_RECIPIENTS_REASON
        assert result.success is False

    @pytest.mark.asyncio
    async def test_sent_to_owner(self, repository: RepositoryRef) -> None:
        """The owner receives the composed email."""
        stack = build_stack(NotificationConfig())
        stack.github.add_user("octocat", "octocat@example.com")

        result = await _send_opened(stack, repository)

        assert result.outcome is NotificationOutcome.SENT
        assert result.owner_notified is True
        assert stack.sender.recipients == ["octocat@example.com"]
        message = stack.sender.sent[0]
        assert message.subject == DATA.subject
        assert "Event: pull_request.opened" in message.text_body

    @pytest.mark.asyncio
    async def test_owner_failure_reported(self, repository: RepositoryRef) -> None:
        """A failed owner delivery is visible even when others succeed."""
        sender = RecordingEmailSender(failing=["octocat@example.com"])
        stack = build_stack(NotificationConfig(), sender=sender)
        stack.github.add_user("octocat", "octocat@example.com")

        result = await _send_opened(
            stack, repository, explicit_recipients=["hubot@example.com"]
        )

        assert result.outcome is NotificationOutcome.SENT
        assert result.owner_notified is False
        assert sender.recipients == ["hubot@example.com"]

    @pytest.mark.asyncio
    async def test_unresolved_owner_assignees_still_notified(
        self, repository: RepositoryRef
    ) -> None:
        """Two resolvable assignees receive mail when the owner cannot."""
        stack = build_stack(NotificationConfig(additional_recipients=True))
        stack.github.add_user("octocat")
        stack.github.add_user("hubot", "hubot@example.com")
        stack.github.add_user("monalisa", "monalisa@example.com")

        result = await stack.service.send_pr_notification(
            repository=repository,
            pull_request=make_pull_request(assignees=["hubot", "monalisa"]),
            event_type="pull_request",
            action="opened",
            data=DATA,
        )

        assert result.outcome is NotificationOutcome.SENT
        assert result.success is True
        assert result.owner_notified is False
        assert sorted(stack.sender.recipients) == [
            "hubot@example.com",
            "monalisa@example.com",
        ]

    @pytest.mark.asyncio
    async def test_delivery_failed(self, repository: RepositoryRef) -> None:
        """All deliveries failing yields DELIVERY_FAILED."""
        sender = RecordingEmailSender(failing=["octocat@example.com"])
        stack = build_stack(NotificationConfig(), sender=sender)
        stack.github.add_user("octocat", "octocat@example.com")

        result = await _send_opened(stack, repository)

        assert result.outcome is NotificationOutcome.DELIVERY_FAILED
        assert result.dispatch is not None
        assert result.dispatch.failed == 1


class TestSendReadyToMerge:
    """Tests for NotificationService.send_ready_to_merge."""

    @pytest.mark.asyncio
    async def test_own_switch(self, repository: RepositoryRef) -> None:
        """Ready-to-merge is controlled only by its own switch."""
        stack = build_stack(NotificationConfig(pr_updates=False, ready_to_merge=False))

        result = await stack.service.send_ready_to_merge(
            repository=repository, pull_request=make_pull_request(), data=DATA
        )

        assert result.outcome is NotificationOutcome.DISABLED
        assert stack.service.ready_to_merge_enabled() is False

    @pytest.mark.asyncio
    async def test_sends_with_ready_to_merge_type(
        self, repository: RepositoryRef
    ) -> None:
        """The synthesized event is sent as pull_request.ready_to_merge."""
        stack = build_stack(NotificationConfig(pr_updates=False))
        stack.github.add_user("octocat", "octocat@example.com")

        result = await stack.service.send_ready_to_merge(
            repository=repository, pull_request=make_pull_request(), data=DATA
        )

        assert result.success is True
        headers = stack.sender.sent[0].headers
        assert headers["X-Notification-Type"] == "pull_request.ready_to_merge"
