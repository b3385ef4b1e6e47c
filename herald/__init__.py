"""Herald: pull request notifications by email for GitHub App webhooks."""

from __future__ import annotations

__version__ = "0.1.0"
