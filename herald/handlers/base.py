"""Shared types for webhook event handlers.

Every handler receives an :class:`InboundEvent` plus the repository it
concerns and returns an :class:`~herald.notify.results.EventResult`. Handlers
read the payload fragments they need through :func:`decode_payload_field`,
which converts them into typed GitHub models and raises
:class:`~herald.handlers.errors.MissingPayloadError` when they are absent.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from herald.logging import get_logger, log_warning
from herald.notify.results import EventResult

from .errors import MissingPayloadError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.github.client import GitHubClient
    from herald.github.models import RepositoryRef
    from herald.notify.dedup import TimeWindowCache
    from herald.notify.readiness import ReadinessTrigger, ReadyToMergeEvaluator
    from herald.notify.results import NotificationResult
    from herald.notify.service import NotificationService

logger = get_logger(__name__)

T = typ.TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class InboundEvent:
    """A webhook delivery after the HTTP layer has accepted it."""

    event_type: str
    action: str
    payload: cabc.Mapping[str, typ.Any]
    delivery_id: str | None = None

    @property
    def event(self) -> str:
        """Return the ``event_type.action`` identifier."""
        return f"{self.event_type}.{self.action}"


class EventHandler(typ.Protocol):
    """Handle one webhook event type."""

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Process ``event`` for ``repository`` and report the outcome."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class HandlerContext:
    """Collaborators shared by all handlers.

    Attributes
    ----------
    github
        REST client used to re-fetch pull requests and check runs.
    service
        Notification service (gate, recipients, composition, dispatch).
    evaluator
        Ready-to-merge evaluator.
    event_cache
        Short window cache suppressing redelivered check and deployment
        events.

    """

    github: GitHubClient
    service: NotificationService
    evaluator: ReadyToMergeEvaluator
    event_cache: TimeWindowCache


def decode_payload_field(
    event: InboundEvent, field: str, result_type: type[T]
) -> T:
    """Convert ``event.payload[field]`` into ``result_type``.

    Raises
    ------
    MissingPayloadError
        If the field is absent or does not match ``result_type``.

    """
    raw = event.payload.get(field)
    if raw is None:
        raise MissingPayloadError.missing(event.event_type, field)
    try:
        return msgspec.convert(raw, type=result_type)
    except msgspec.ValidationError as exc:
        raise MissingPayloadError.invalid(event.event_type, field, str(exc)) from exc


def sender_login(event: InboundEvent) -> str | None:
    """Return the login of the account that triggered ``event``, if present."""
    sender = event.payload.get("sender")
    login = sender.get("login") if isinstance(sender, dict) else None
    return login if isinstance(login, str) else None


async def evaluate_readiness(
    evaluator: ReadyToMergeEvaluator,
    repository: RepositoryRef,
    pr_numbers: cabc.Iterable[int],
    trigger: ReadinessTrigger,
) -> list[NotificationResult]:
    """Run the ready-to-merge evaluator for each pull request in turn.

    Only evaluations that attempted a notification contribute a result;
    "not ready" and duplicate evaluations are not errors for the event.
    """
    notifications: list[NotificationResult] = []
    for number in pr_numbers:
        readiness = await evaluator.evaluate(repository, number, trigger)
        if readiness.notification is not None:
            notifications.append(readiness.notification)
    return notifications


class DefaultHandler:
    """Fallback for event types Herald does not notify about."""

    async def handle(
        self, event: InboundEvent, repository: RepositoryRef
    ) -> EventResult:
        """Report ``event`` as not processed."""
        log_warning(
            logger,
            "No handler for event %s in %s",
            event.event,
            repository.slug,
        )
        return EventResult.ignored(
            event.event_type, event.action, f"No handler for {event.event_type}"
        )
