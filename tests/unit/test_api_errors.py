"""Unit tests for API error handlers."""

from __future__ import annotations

import falcon
import falcon.asgi
import falcon.testing
import pytest

from herald.api.errors import (
    InvalidInputError,
    InvalidSignatureError,
    handle_invalid_input,
    handle_invalid_signature,
)


class _RaisingResource:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def on_get(self, _req: falcon.asgi.Request, _resp: object) -> None:
        raise self._exc


def _client(exc: Exception) -> falcon.testing.TestClient:
    app = falcon.asgi.App()
    app.add_route("/boom", _RaisingResource(exc))
    app.add_error_handler(InvalidSignatureError, handle_invalid_signature)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    return falcon.testing.TestClient(app)


class TestInvalidSignatureError:
    """Tests for InvalidSignatureError and its handler."""

    @pytest.mark.parametrize(
        ("error", "reason"),
        [
            (InvalidSignatureError.missing(), "X-Hub-Signature-256 header is required"),
            (InvalidSignatureError.mismatch(), "Signature does not match request body"),
        ],
    )
    def test_maps_to_401(self, error: InvalidSignatureError, reason: str) -> None:
        """Signature failures return 401 with the reason."""
        result = _client(error).simulate_get("/boom")
        assert result.status == falcon.HTTP_401, "expected HTTP 401"
        assert result.json == {"title": "Invalid signature", "description": reason}


class TestInvalidInputError:
    """Tests for InvalidInputError and its handler."""

    def test_message_includes_field(self) -> None:
        """The exception message is prefixed with the field name."""
        error = InvalidInputError("header is required", field="X-GitHub-Event")
        assert str(error) == "X-GitHub-Event: header is required"

    def test_maps_to_400_with_field(self) -> None:
        """Field-specific errors include the field in the body."""
        error = InvalidInputError("header is required", field="X-GitHub-Event")
        result = _client(error).simulate_get("/boom")
        assert result.status == falcon.HTTP_400, "expected HTTP 400"
        assert result.json == {
            "title": "Invalid input",
            "description": "header is required",
            "field": "X-GitHub-Event",
        }

    def test_maps_to_400_without_field(self) -> None:
        """Errors without a field omit it from the body."""
        result = _client(InvalidInputError("bad body")).simulate_get("/boom")
        assert result.json == {"title": "Invalid input", "description": "bad body"}
