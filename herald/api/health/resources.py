"""Liveness and readiness probes.

``/health`` reports that the process is alive. ``/ready`` also reports
whether webhook processing is wired, so a deployment without a GitHub token
is visibly degraded rather than silently dropping events.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource.

    Always responds with HTTP 200; ``webhooks`` tells operators whether
    ``POST /webhooks/github`` is registered.

    Parameters
    ----------
    webhooks_enabled
        Whether the app was built with a webhook processor.

    """

    def __init__(self, *, webhooks_enabled: bool = False) -> None:
        """Record whether webhook processing is available."""
        self._webhooks_enabled = webhooks_enabled

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        resp.media = {
            "status": "ready",
            "webhooks": "enabled" if self._webhooks_enabled else "disabled",
        }
        resp.status = HTTPStatus.OK
