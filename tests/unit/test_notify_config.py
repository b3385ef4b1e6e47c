"""Unit tests for NotificationConfig."""

from __future__ import annotations

import pytest

from herald.notify.config import NotificationConfig


class TestNotificationConfigDefaults:
    """Tests for the dataclass defaults."""

    def test_every_category_enabled_by_default(self) -> None:
        """All category switches default to on."""
        config = NotificationConfig()
        switches = (
            config.pr_lifecycle,
            config.pr_reviews,
            config.pr_comments,
            config.check_results,
            config.pr_updates,
            config.deployments,
            config.ready_to_merge,
        )
        assert all(switches), "every category should default to enabled"

    def test_additional_recipients_disabled_by_default(self) -> None:
        """Only the owner is notified unless expansion is switched on."""
        config = NotificationConfig()
        assert config.additional_recipients is False, "expansion should be off"
        assert config.max_concurrent_deliveries == 5, "default concurrency is 5"


class TestNotificationConfigFromEnv:
    """Tests for NotificationConfig.from_env."""

    def test_defaults_when_unset(self) -> None:
        """An empty environment yields the dataclass defaults."""
        assert NotificationConfig.from_env() == NotificationConfig(), (
            "from_env should match defaults when nothing is set"
        )

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            pytest.param("false", False, id="false"),
            pytest.param("0", False, id="zero"),
            pytest.param("OFF", False, id="off-upper"),
            pytest.param("yes", True, id="yes"),
            pytest.param(" 1 ", True, id="one-padded"),
        ],
    )
    def test_boolean_switches(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
    ) -> None:
        """Boolean switches accept the usual spellings."""
        monkeypatch.setenv("HERALD_NOTIFY_DEPLOYMENTS", raw)
        assert NotificationConfig.from_env().deployments is expected, (
            f"{raw!r} should parse as {expected}"
        )

    def test_invalid_boolean_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unrecognised boolean values name the variable."""
        monkeypatch.setenv("HERALD_NOTIFY_PR_REVIEWS", "sometimes")
        with pytest.raises(ValueError, match="HERALD_NOTIFY_PR_REVIEWS"):
            NotificationConfig.from_env()

    def test_recipient_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Lists, overrides and owner fallbacks are parsed."""
        monkeypatch.setenv("HERALD_NOTIFY_ADDITIONAL_RECIPIENTS", "true")
        monkeypatch.setenv(
            "HERALD_ADDITIONAL_RECIPIENT_EMAILS", "lead@acme.test, ,qa@acme.test"
        )
        monkeypatch.setenv("HERALD_ADDITIONAL_RECIPIENT_USERNAMES", "hubot")
        monkeypatch.setenv(
            "HERALD_EMAIL_OVERRIDES", "OctoCat=octo@acme.test,hubot=bot@acme.test"
        )
        monkeypatch.setenv("HERALD_DEFAULT_OWNER_EMAIL", "owners@acme.test")
        monkeypatch.setenv("HERALD_OWNER_EMAIL_DOMAIN", "@acme.test")

        config = NotificationConfig.from_env()

        assert config.additional_recipients is True
        assert config.additional_emails == ("lead@acme.test", "qa@acme.test")
        assert config.additional_usernames == ("hubot",)
        assert dict(config.email_overrides) == {
            "octocat": "octo@acme.test",
            "hubot": "bot@acme.test",
        }, "override logins should be lower-cased"
        assert config.default_owner_email == "owners@acme.test"
        assert config.owner_email_domain == "acme.test", "leading @ is stripped"

    def test_malformed_override_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Override entries must be login=email pairs."""
        monkeypatch.setenv("HERALD_EMAIL_OVERRIDES", "octocat")
        with pytest.raises(ValueError, match="login=email"):
            NotificationConfig.from_env()

    @pytest.mark.parametrize("raw", ["zero", "0", "-3"])
    def test_invalid_concurrency_raises(
        self, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        """Concurrency must be a positive integer."""
        monkeypatch.setenv("HERALD_MAX_CONCURRENT_DELIVERIES", raw)
        with pytest.raises(ValueError, match="HERALD_MAX_CONCURRENT_DELIVERIES"):
            NotificationConfig.from_env()

    def test_concurrency_parsed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A valid concurrency bound is used."""
        monkeypatch.setenv("HERALD_MAX_CONCURRENT_DELIVERIES", "12")
        assert NotificationConfig.from_env().max_concurrent_deliveries == 12
