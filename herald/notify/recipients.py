"""Resolve who receives a pull request notification.

The pull request owner is always looked up first and, when an address is
found, always occupies position 0 of :attr:`RecipientSet.emails`. Failure to
find the owner's address is logged at CRITICAL because it defeats the purpose
of the notification; processing continues with the remaining recipients.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from herald.github.errors import GitHubAPIError
from herald.logging import get_logger, log_critical, log_debug, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.github.client import GitHubClient
    from herald.github.models import PullRequest

    from .config import NotificationConfig

logger = get_logger(__name__)


class EmailSource(enum.StrEnum):
    """Where a resolved address came from."""

    PUBLIC_PROFILE = "public_profile"
    OVERRIDE = "override"
    DEFAULT = "default"
    DOMAIN = "domain"


@dataclasses.dataclass(frozen=True, slots=True)
class EmailLookup:
    """Resolved address for a GitHub login."""

    login: str
    email: str
    source: EmailSource


@dataclasses.dataclass(frozen=True, slots=True)
class RecipientSet:
    """Owner slot plus additional recipients for one notification."""

    owner_login: str | None
    owner_email: str | None
    additional_emails: tuple[str, ...] = ()

    @property
    def emails(self) -> tuple[str, ...]:
        """All addresses, owner first, without case-insensitive duplicates."""
        head = (self.owner_email,) if self.owner_email else ()
        return _dedupe((*head, *self.additional_emails))

    @property
    def has_owner(self) -> bool:
        """Return True when the owner's address was resolved."""
        return self.owner_email is not None

    def __bool__(self) -> bool:
        """Return True when there is at least one address."""
        return bool(self.emails)


def _dedupe(emails: cabc.Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    ordered: list[str] = []
    for email in emails:
        folded = email.strip().lower()
        if not folded or folded in seen:
            continue
        seen.add(folded)
        ordered.append(email.strip())
    return tuple(ordered)


class RecipientResolver:
    """Turn a pull request into a :class:`RecipientSet`.

    Parameters
    ----------
    github
        Client used for public profile lookups.
    config
        Supplies the additional-recipients switch, static recipients and the
        owner email fallbacks.

    """

    def __init__(self, github: GitHubClient, config: NotificationConfig) -> None:
        """Store collaborators."""
        self._github = github
        self._config = config

    async def lookup_email(self, login: str) -> EmailLookup | None:
        """Resolve ``login`` from its public profile or a configured override.

        API failures are logged and reported as ``None``.
        """
        override = self._config.email_overrides.get(login.lower())
        if override:
            return EmailLookup(login, override, EmailSource.OVERRIDE)
        try:
            user = await self._github.get_user(login)
        except GitHubAPIError as exc:
            log_warning(logger, "Could not fetch GitHub user %s: %s", login, exc)
            return None
        if user.email:
            return EmailLookup(login, user.email, EmailSource.PUBLIC_PROFILE)
        log_debug(logger, "GitHub user %s has no public email", login)
        return None

    async def lookup_owner_email(self, login: str) -> EmailLookup | None:
        """Resolve the owner's address, applying owner-only fallbacks."""
        found = await self.lookup_email(login)
        if found is not None:
            return found
        if self._config.default_owner_email:
            return EmailLookup(
                login, self._config.default_owner_email, EmailSource.DEFAULT
            )
        if self._config.owner_email_domain:
            return EmailLookup(
                login, f"{login}@{self._config.owner_email_domain}", EmailSource.DOMAIN
            )
        return None

    async def resolve(
        self,
        pull_request: PullRequest,
        explicit_recipients: cabc.Sequence[str] | None = None,
    ) -> RecipientSet:
        """Resolve the recipients for a notification about ``pull_request``.

        Parameters
        ----------
        pull_request
            Pull request whose owner and participants are notified.
        explicit_recipients
            When given, used verbatim as the additional recipients regardless
            of the additional-recipients switch.

        Returns
        -------
        RecipientSet
            Owner slot and deduplicated additional addresses.

        """
        owner_login = pull_request.owner_login
        owner_email = await self._resolve_owner(owner_login, pull_request.number)

        if explicit_recipients is not None:
            additional: cabc.Iterable[str] = explicit_recipients
        elif self._config.additional_recipients:
            additional = await self._gather_additional(pull_request, owner_login)
        else:
            additional = ()

        exclude = {owner_email.lower()} if owner_email else set()
        extras = tuple(
            email for email in _dedupe(additional) if email.lower() not in exclude
        )
        return RecipientSet(owner_login, owner_email, extras)

    async def _resolve_owner(
        self, owner_login: str | None, pr_number: int
    ) -> str | None:
        if owner_login is None:
            log_critical(
                logger,
                "Pull request #%d has no owner login; owner will NOT be notified",
                pr_number,
            )
            return None
        found = await self.lookup_owner_email(owner_login)
        if found is None:
            log_critical(
                logger,
                "Cannot resolve email for pull request owner %s (PR #%d); "
                "owner will NOT be notified",
                owner_login,
                pr_number,
            )
            return None
        if found.source is not EmailSource.PUBLIC_PROFILE:
            log_warning(
                logger,
                "Using %s email for pull request owner %s",
                found.source,
                owner_login,
            )
        return found.email

    async def _gather_additional(
        self, pull_request: PullRequest, owner_login: str | None
    ) -> list[str]:
        logins: list[str] = []
        for user in (*pull_request.assignees, *pull_request.requested_reviewers):
            if user.login != owner_login and user.login not in logins:
                logins.append(user.login)

        emails: list[str] = []
        for login in logins:
            emails.extend(await self._lookup_additional(login))
        emails.extend(self._config.additional_emails)
        for login in self._config.additional_usernames:
            if login != owner_login and login not in logins:
                emails.extend(await self._lookup_additional(login))
        return emails

    async def _lookup_additional(self, login: str) -> list[str]:
        found = await self.lookup_email(login)
        if found is None:
            log_warning(
                logger, "No email for additional recipient %s; skipping", login
            )
            return []
        return [found.email]
