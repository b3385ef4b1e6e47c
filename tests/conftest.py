"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import os

import pytest

from herald.github.models import RepositoryRef
from herald.notify.config import NotificationConfig


@pytest.fixture
def repository() -> RepositoryRef:
    """Return the repository used across notification tests."""
    return RepositoryRef(owner="acme", name="widgets")


@pytest.fixture
def notification_config() -> NotificationConfig:
    """Return a configuration with every category enabled."""
    return NotificationConfig()


@pytest.fixture(autouse=True)
def _clear_herald_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep HERALD_* variables from the host out of configuration tests."""
    for name in list(os.environ):
        if name.startswith("HERALD_"):
            monkeypatch.delenv(name, raising=False)
