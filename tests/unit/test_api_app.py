"""Unit tests for herald.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

import falcon.asgi
import falcon.testing
import pytest

from herald.api.app import WEBHOOK_ROUTE, AppDependencies, create_app
from tests.unit.fakes import RecordingProcessor


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client() -> falcon.testing.TestClient:
    """Build a test client with a webhook processor."""
    deps = AppDependencies(processor=RecordingProcessor(), process_inline=True)
    return falcon.testing.TestClient(create_app(deps))


class TestCreateAppHealthOnly:
    """Tests for create_app() without a webhook processor."""

    def test_returns_falcon_app(self) -> None:
        """Create_app() returns a Falcon ASGI App."""
        app = create_app()
        assert isinstance(app, falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_ready_reports_webhooks_disabled(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Health-only app reports that webhooks are disabled."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready", "webhooks": "disabled"}

    def test_webhook_endpoint_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without a processor, the webhook endpoint returns 404."""
        result = health_client.simulate_post(WEBHOOK_ROUTE, body=b"{}")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"

    def test_dependencies_without_processor(self) -> None:
        """A secret alone does not register the webhook route."""
        client = falcon.testing.TestClient(
            create_app(AppDependencies(webhook_secret="s3cret"))
        )
        result = client.simulate_post(WEBHOOK_ROUTE, body=b"{}")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestCreateAppWithProcessor:
    """Tests for create_app() with a webhook processor."""

    def test_ready_reports_webhooks_enabled(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """The readiness probe shows webhook processing is wired."""
        result = full_client.simulate_get("/ready")
        assert result.json == {"status": "ready", "webhooks": "enabled"}

    def test_webhook_route_registered(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """POST /webhooks/github accepts deliveries."""
        result = full_client.simulate_post(
            WEBHOOK_ROUTE,
            body=b'{"action": "opened"}',
            headers={"X-GitHub-Event": "pull_request"},
        )
        assert result.status == falcon.HTTP_202, "expected HTTP 202"
