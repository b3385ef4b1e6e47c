"""Errors raised while reading webhook payloads."""

from __future__ import annotations


class MissingPayloadError(ValueError):
    """Raised when a webhook payload lacks a field the handler requires."""

    def __init__(self, message: str, *, field: str) -> None:
        """Initialise with a message and the offending payload field."""
        self.field = field
        super().__init__(message)

    @classmethod
    def missing(cls, event: str, field: str) -> MissingPayloadError:
        """Return an error for an absent payload field."""
        msg = f"{event} payload has no {field!r} object"
        return cls(msg, field=field)

    @classmethod
    def invalid(cls, event: str, field: str, detail: str) -> MissingPayloadError:
        """Return an error for a payload field with an unexpected shape."""
        msg = f"{event} payload field {field!r} is malformed: {detail}"
        return cls(msg, field=field)
