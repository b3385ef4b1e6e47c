"""Application factory for the Herald Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when a webhook processor is
available, the GitHub webhook endpoint.

Usage
-----
Create a health-only app::

    app = create_app()

Create a full app with webhook intake::

    from herald.api.app import AppDependencies, create_app

    deps = AppDependencies(processor=router, webhook_secret="s3cret")
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from herald.api.errors import (
    InvalidInputError,
    InvalidSignatureError,
    handle_invalid_input,
    handle_invalid_signature,
)
from herald.api.health.resources import HealthResource, ReadyResource
from herald.api.webhooks.resources import GitHubWebhookResource

if typ.TYPE_CHECKING:
    from herald.api.webhooks.resources import WebhookProcessor

__all__ = ["WEBHOOK_ROUTE", "AppDependencies", "create_app"]

WEBHOOK_ROUTE = "/webhooks/github"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    processor
        Webhook event processor. Without it only health endpoints are
        registered.
    webhook_secret
        Shared secret for ``X-Hub-Signature-256`` verification.
    process_inline
        Process events before responding; intended for tests.

    """

    processor: WebhookProcessor | None = None
    webhook_secret: str | None = None
    process_inline: bool = False


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or without a
        processor, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()
    processor = dependencies.processor if dependencies is not None else None

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(webhooks_enabled=processor is not None))

    if dependencies is not None and processor is not None:
        app.add_route(
            WEBHOOK_ROUTE,
            GitHubWebhookResource(
                processor,
                secret=dependencies.webhook_secret,
                process_inline=dependencies.process_inline,
            ),
        )

    app.add_error_handler(InvalidSignatureError, handle_invalid_signature)
    app.add_error_handler(InvalidInputError, handle_invalid_input)

    return app
