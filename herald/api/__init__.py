"""Herald HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application for health probes and GitHub webhook intake.

Usage
-----
Create and run the application::

    from herald.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with POST /webhooks/github

Public API
----------
create_app
    Application factory that configures the Falcon ASGI app with health
    endpoints and, when a processor is provided, the webhook endpoint.
"""

from herald.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
