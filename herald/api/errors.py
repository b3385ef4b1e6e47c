"""API-layer exceptions and the Falcon error handlers that map them.

Usage
-----
Register error handlers on the Falcon app::

    from herald.api.errors import (
        InvalidInputError,
        InvalidSignatureError,
        handle_invalid_input,
        handle_invalid_signature,
    )

    app.add_error_handler(InvalidSignatureError, handle_invalid_signature)
    app.add_error_handler(InvalidInputError, handle_invalid_input)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = [
    "InvalidInputError",
    "InvalidSignatureError",
    "handle_invalid_input",
    "handle_invalid_signature",
]


class InvalidSignatureError(Exception):
    """Raised when a webhook delivery fails signature verification."""

    def __init__(self, reason: str) -> None:
        """Initialize with a human-readable reason."""
        self.reason = reason
        super().__init__(reason)

    @classmethod
    def missing(cls) -> InvalidSignatureError:
        """Return an error for a delivery without ``X-Hub-Signature-256``."""
        return cls("X-Hub-Signature-256 header is required")

    @classmethod
    def mismatch(cls) -> InvalidSignatureError:
        """Return an error for a signature that does not match the body."""
        return cls("Signature does not match request body")


class InvalidInputError(Exception):
    """Raised for malformed webhook requests that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the header or field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


async def handle_invalid_signature(
    _req: Request,
    resp: Response,
    ex: InvalidSignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidSignatureError`` to an HTTP 401 JSON response."""
    resp.status = falcon.HTTP_401
    resp.media = {
        "title": "Invalid signature",
        "description": ex.reason,
    }


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media
