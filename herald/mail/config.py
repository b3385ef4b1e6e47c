"""SMTP transport configuration.

Usage
-----
>>> import os
>>> os.environ["HERALD_SMTP_USER"] = "bot@example.com"
>>> os.environ["HERALD_SMTP_PASSWORD"] = "app-password"
>>> SMTPConfig.from_env().is_configured
True

"""

from __future__ import annotations

import dataclasses as dc
import os

from .errors import SMTPConfigError

_MIN_PORT = 1
_MAX_PORT = 65535


@dc.dataclass(frozen=True, slots=True)
class SMTPConfig:
    """Connection settings for the SMTP sender.

    Attributes
    ----------
    host, port
        SMTP server address. Defaults to Gmail submission on 587.
    secure
        Use implicit TLS (``SMTP_SSL``) instead of STARTTLS.
    username, password
        Login credentials. Without both, delivery falls back to logging.
    from_address
        ``From`` header; defaults to ``username``.
    timeout_s
        Socket timeout for each SMTP session.

    """

    host: str = "smtp.gmail.com"
    port: int = 587
    secure: bool = False
    username: str | None = None
    password: str | None = None
    from_address: str | None = None
    timeout_s: float = 30.0

    @property
    def is_configured(self) -> bool:
        """Return True when credentials for a real SMTP session are present."""
        return bool(self.username and self.password)

    @property
    def sender(self) -> str:
        """Address used in the ``From`` header."""
        return self.from_address or self.username or "herald@localhost"

    @classmethod
    def from_env(cls) -> SMTPConfig:
        """Create configuration from ``HERALD_SMTP_*`` environment variables.

        Raises
        ------
        SMTPConfigError
            If the port or timeout cannot be parsed.

        """
        raw_port = os.environ.get("HERALD_SMTP_PORT", "").strip()
        port = 587
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError as exc:
                raise SMTPConfigError.invalid_port(raw_port) from exc
            if not (_MIN_PORT <= port <= _MAX_PORT):
                raise SMTPConfigError.invalid_port(raw_port)

        raw_timeout = os.environ.get("HERALD_SMTP_TIMEOUT_S", "").strip()
        timeout_s = 30.0
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise SMTPConfigError.invalid_timeout(raw_timeout) from exc
            if timeout_s <= 0:
                raise SMTPConfigError.invalid_timeout(raw_timeout)

        secure = os.environ.get("HERALD_SMTP_SECURE", "").strip().lower()
        return cls(
            host=os.environ.get("HERALD_SMTP_HOST", "").strip() or "smtp.gmail.com",
            port=port,
            secure=secure in {"true", "1", "yes", "on"},
            username=os.environ.get("HERALD_SMTP_USER", "").strip() or None,
            password=os.environ.get("HERALD_SMTP_PASSWORD") or None,
            from_address=os.environ.get("HERALD_SMTP_FROM", "").strip() or None,
            timeout_s=timeout_s,
        )
