"""Route inbound webhook events to their handlers.

:class:`EventRouter` is the top-level per-event entry point: it logs the
event, resolves the repository, dispatches to the registered handler, and
converts every failure into a failed :class:`EventResult`. No exception
escapes :meth:`EventRouter.process`.

Usage
-----
>>> router = build_event_router(
...     github=GitHubRestClient(GitHubRestConfig.from_env()),
...     config=NotificationConfig.from_env(),
...     sender=LoggingEmailSender(),
... )
>>> result = await router.process(
...     InboundEvent(event_type="pull_request", action="opened", payload=payload)
... )

"""

from __future__ import annotations

import types
import typing as typ

from herald.common.time import utcnow
from herald.github.models import RepositoryRef
from herald.logging import get_logger, log_error, log_exception
from herald.notify.categories import NotificationGate
from herald.notify.dedup import (
    EVENT_DEDUP_WINDOW,
    READY_TO_MERGE_DEDUP_WINDOW,
    TimeWindowCache,
)
from herald.notify.dispatch import EmailDispatcher
from herald.notify.observability import NotificationEventLogger
from herald.notify.readiness import ReadyToMergeEvaluator
from herald.notify.recipients import RecipientResolver
from herald.notify.results import EventResult, NotificationOutcome
from herald.notify.service import NotificationService

from .base import DefaultHandler, HandlerContext
from .check_run import CheckRunHandler, CheckSuiteHandler
from .comments import CommentHandler
from .deployment import DeploymentHandler
from .errors import MissingPayloadError
from .pull_request import PullRequestHandler, PullRequestReviewHandler

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.common.time import Clock
    from herald.github.client import GitHubClient
    from herald.mail.sender import EmailSender
    from herald.notify.config import NotificationConfig

    from .base import EventHandler, InboundEvent

logger = get_logger(__name__)


class EventRouter:
    """Dispatch events by type and guarantee a result for every event.

    Parameters
    ----------
    handlers
        Handler per webhook event type.
    default
        Handler for unregistered event types.
    events
        Structured event logger.

    """

    def __init__(
        self,
        handlers: cabc.Mapping[str, EventHandler],
        *,
        default: EventHandler | None = None,
        events: NotificationEventLogger | None = None,
    ) -> None:
        """Store the handler table."""
        self._handlers = types.MappingProxyType(dict(handlers))
        self._default = default or DefaultHandler()
        self._events = events or NotificationEventLogger()

    @property
    def registered_events(self) -> tuple[str, ...]:
        """Event types with a dedicated handler."""
        return tuple(self._handlers)

    async def process(self, event: InboundEvent) -> EventResult:
        """Handle ``event`` and return its outcome; never raises."""
        self._events.log_webhook_received(
            event_type=event.event_type,
            action=event.action,
            delivery_id=event.delivery_id,
        )
        result = await self._dispatch(event)
        self._events.log_webhook_processed(
            event_type=event.event_type,
            action=event.action,
            processed=result.processed,
            success=result.success,
            reason=result.reason,
        )
        return result

    async def _dispatch(self, event: InboundEvent) -> EventResult:
        repository = RepositoryRef.from_payload(event.payload)
        if repository is None:
            log_error(logger, "Event %s has no repository in its payload", event.event)
            return EventResult.failed(
                event.event_type,
                event.action,
                "Payload has no repository",
                outcome=NotificationOutcome.MISSING_DATA,
            )

        handler = self._handlers.get(event.event_type, self._default)
        try:
            return await handler.handle(event, repository)
        except MissingPayloadError as exc:
            log_error(
                logger,
                "Missing data in %s for %s: %s",
                event.event,
                repository.slug,
                exc,
            )
            return EventResult.failed(
                event.event_type,
                event.action,
                str(exc),
                outcome=NotificationOutcome.MISSING_DATA,
            )
        except Exception as exc:
            log_exception(logger, f"Unexpected error handling {event.event}", exc)
            return EventResult.failed(
                event.event_type, event.action, f"Unexpected error: {exc}"
            )


def build_event_router(
    *,
    github: GitHubClient,
    config: NotificationConfig,
    sender: EmailSender,
    clock: Clock = utcnow,
    events: NotificationEventLogger | None = None,
) -> EventRouter:
    """Wire the notification stack and return a router over it.

    Parameters
    ----------
    github
        GitHub API client shared by recipient resolution and handlers.
    config
        Notification switches and recipient settings.
    sender
        Email transport.
    clock
        Time source for both dedup caches.
    events
        Structured event logger shared by every component.

    Returns
    -------
    EventRouter
        Router with handlers registered for every supported event type.

    """
    events = events or NotificationEventLogger()
    gate = NotificationGate(config)
    service = NotificationService(
        gate=gate,
        resolver=RecipientResolver(github, config),
        dispatcher=EmailDispatcher(
            sender,
            max_concurrency=config.max_concurrent_deliveries,
            events=events,
        ),
        events=events,
    )
    evaluator = ReadyToMergeEvaluator(
        github=github,
        service=service,
        cache=TimeWindowCache(READY_TO_MERGE_DEDUP_WINDOW, clock=clock),
        events=events,
    )
    context = HandlerContext(
        github=github,
        service=service,
        evaluator=evaluator,
        event_cache=TimeWindowCache(EVENT_DEDUP_WINDOW, clock=clock),
    )
    pull_requests = PullRequestHandler(context)
    comments = CommentHandler(context)
    deployments = DeploymentHandler(context)
    handlers: dict[str, EventHandler] = {
        "pull_request": pull_requests,
        "pull_request_review": PullRequestReviewHandler(context),
        "issue_comment": comments,
        "pull_request_review_comment": comments,
        "check_run": CheckRunHandler(context),
        "check_suite": CheckSuiteHandler(context),
        "deployment": deployments,
        "deployment_status": deployments,
    }
    return EventRouter(handlers, events=events)
