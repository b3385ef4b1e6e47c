"""Email transport errors."""

from __future__ import annotations


class EmailDeliveryError(RuntimeError):
    """Raised when the transport could not hand a message to the server."""

    def __init__(self, message: str, *, recipient: str) -> None:
        """Initialise with a message and the recipient that failed."""
        self.recipient = recipient
        super().__init__(message)

    @classmethod
    def from_exception(cls, recipient: str, exc: BaseException) -> EmailDeliveryError:
        """Wrap a transport exception for ``recipient``."""
        return cls(f"Delivery to {recipient} failed: {exc}", recipient=recipient)


class SMTPConfigError(RuntimeError):
    """Raised when SMTP configuration is invalid."""

    @classmethod
    def invalid_port(cls, raw: str) -> SMTPConfigError:
        """Return an error for a port that is not an integer in range."""
        return cls(f"HERALD_SMTP_PORT must be an integer in 1-65535, got: {raw!r}")

    @classmethod
    def invalid_timeout(cls, raw: str) -> SMTPConfigError:
        """Return an error for a non-positive or non-numeric timeout."""
        return cls(f"HERALD_SMTP_TIMEOUT_S must be a positive number, got: {raw!r}")

    @classmethod
    def unreachable(cls, host: str, port: int, exc: BaseException) -> SMTPConfigError:
        """Return an error for a server that rejected the startup check."""
        return cls(f"SMTP check against {host}:{port} failed: {exc}")
