"""Herald runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`herald.api.app.create_app` for application construction
while keeping the ``herald.runtime:create_app`` entrypoint stable.

When ``HERALD_GITHUB_TOKEN`` is set, the runtime wires the full notification
stack so the app accepts ``POST /webhooks/github``. Otherwise it starts in
health-only mode and warns.

Configuration is driven by environment variables:

- ``HERALD_HOST``: Bind address (default ``0.0.0.0``)
- ``HERALD_PORT``: Listen port (default ``3000``)
- ``HERALD_LOG_LEVEL``: Log level (default ``INFO``)
- ``HERALD_WEBHOOK_SECRET``: Shared webhook secret (optional; enables
  signature verification when set)
- ``HERALD_GITHUB_TOKEN``: GitHub API token (optional; enables webhook
  processing when set)

Run the service directly with ``python -m herald.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from herald.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid HERALD_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        App with ``/health`` and ``/ready``, plus ``POST /webhooks/github``
        when a GitHub token is configured.

    """
    from herald.api.app import create_app as _create_api_app

    if not os.environ.get("HERALD_GITHUB_TOKEN", "").strip():
        log_warning(
            logger,
            "HERALD_GITHUB_TOKEN is not set; serving health endpoints only",
        )
        return _create_api_app()

    from herald.api.app import AppDependencies
    from herald.api.factory import build_webhook_processor

    secret = os.environ.get("HERALD_WEBHOOK_SECRET", "").strip() or None
    if secret is None:
        log_warning(
            logger,
            "HERALD_WEBHOOK_SECRET is not set; webhook signatures are not verified",
        )
    deps = AppDependencies(processor=build_webhook_processor(), webhook_secret=secret)
    return _create_api_app(deps)


def main() -> None:
    """Start the Herald server using Granian.

    Reads ``HERALD_HOST``, ``HERALD_PORT``, and ``HERALD_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("HERALD_HOST", "0.0.0.0")  # noqa: S104 - container bind
    port_str = os.environ.get("HERALD_PORT", "3000")
    port = _parse_port(port_str)
    log_level_str = os.environ.get("HERALD_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid HERALD_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Herald on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "herald.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
