"""Configuration for notification categories and recipient expansion.

Usage
-----
Create a configuration with defaults (every category enabled, no
additional recipients):

>>> config = NotificationConfig()
>>> config.pr_lifecycle
True

Or load from environment variables:

>>> import os
>>> os.environ["HERALD_NOTIFY_DEPLOYMENTS"] = "false"
>>> NotificationConfig.from_env().deployments
False

"""

from __future__ import annotations

import dataclasses as dc
import os
import types
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _parse_bool(env_var: str, *, default: bool) -> bool:
    """Read a boolean env var, falling back to ``default`` when unset."""
    raw = os.environ.get(env_var, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    msg = f"{env_var} must be a boolean (true/false), got: {raw!r}"
    raise ValueError(msg)


def _parse_list(env_var: str) -> tuple[str, ...]:
    """Read a comma separated env var into a tuple of non-empty items."""
    raw = os.environ.get(env_var, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_positive_int(env_var: str, default: int) -> int:
    """Read a positive integer env var, falling back to a default."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def _parse_overrides(env_var: str) -> cabc.Mapping[str, str]:
    """Parse ``login=email`` pairs into a case-insensitive lookup map."""
    overrides: dict[str, str] = {}
    for item in _parse_list(env_var):
        login, sep, email = item.partition("=")
        if not sep or not login.strip() or not email.strip():
            msg = f"{env_var} entries must look like login=email, got: {item!r}"
            raise ValueError(msg)
        overrides[login.strip().lower()] = email.strip()
    return types.MappingProxyType(overrides)


@dc.dataclass(frozen=True, slots=True)
class NotificationConfig:
    """Switches and recipient settings for notification delivery.

    Attributes
    ----------
    pr_lifecycle, pr_reviews, pr_comments, check_results, pr_updates, deployments
        Per-category switches consulted by the notification gate.
    ready_to_merge
        Independent switch for synthesized ready-to-merge notifications.
    additional_recipients
        When ``False`` only the pull request owner is notified (unless a
        caller passes an explicit recipient list).
    additional_emails
        Extra addresses notified on every event when expansion is enabled.
    additional_usernames
        Extra GitHub logins resolved to emails on every event when expansion
        is enabled.
    email_overrides
        Lower-cased login to email map used when a login has no public email.
    default_owner_email
        Address used for a pull request owner with no public or overridden email.
    owner_email_domain
        Domain used to build ``login@domain`` as the last owner fallback.
    max_concurrent_deliveries
        Upper bound on simultaneous email transport calls per notification.

    """

    pr_lifecycle: bool = True
    pr_reviews: bool = True
    pr_comments: bool = True
    check_results: bool = True
    pr_updates: bool = True
    deployments: bool = True
    ready_to_merge: bool = True
    additional_recipients: bool = False
    additional_emails: tuple[str, ...] = ()
    additional_usernames: tuple[str, ...] = ()
    email_overrides: cabc.Mapping[str, str] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    default_owner_email: str | None = None
    owner_email_domain: str | None = None
    max_concurrent_deliveries: int = 5

    @classmethod
    def from_env(cls) -> NotificationConfig:
        """Create configuration from ``HERALD_*`` environment variables.

        Raises
        ------
        ValueError
            If a boolean, integer or override variable is malformed.

        """
        domain = os.environ.get("HERALD_OWNER_EMAIL_DOMAIN", "").strip()
        default_owner = os.environ.get("HERALD_DEFAULT_OWNER_EMAIL", "").strip()
        return cls(
            pr_lifecycle=_parse_bool("HERALD_NOTIFY_PR_LIFECYCLE", default=True),
            pr_reviews=_parse_bool("HERALD_NOTIFY_PR_REVIEWS", default=True),
            pr_comments=_parse_bool("HERALD_NOTIFY_PR_COMMENTS", default=True),
            check_results=_parse_bool("HERALD_NOTIFY_CHECK_RESULTS", default=True),
            pr_updates=_parse_bool("HERALD_NOTIFY_PR_UPDATES", default=True),
            deployments=_parse_bool("HERALD_NOTIFY_DEPLOYMENTS", default=True),
            ready_to_merge=_parse_bool("HERALD_NOTIFY_READY_TO_MERGE", default=True),
            additional_recipients=_parse_bool(
                "HERALD_NOTIFY_ADDITIONAL_RECIPIENTS", default=False
            ),
            additional_emails=_parse_list("HERALD_ADDITIONAL_RECIPIENT_EMAILS"),
            additional_usernames=_parse_list("HERALD_ADDITIONAL_RECIPIENT_USERNAMES"),
            email_overrides=_parse_overrides("HERALD_EMAIL_OVERRIDES"),
            default_owner_email=default_owner or None,
            owner_email_domain=domain.lstrip("@") or None,
            max_concurrent_deliveries=_parse_positive_int(
                "HERALD_MAX_CONCURRENT_DELIVERIES", 5
            ),
        )
