"""GitHub REST client used to resolve identities and re-fetch fresh state."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx
import msgspec

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import CheckRun, CheckRunPage, GitHubUser, PullRequest

if typ.TYPE_CHECKING:
    from .models import RepositoryRef

T = typ.TypeVar("T")


class GitHubClient(typ.Protocol):
    """Interface for the GitHub calls the notification engine makes.

    Every method raises :class:`~herald.github.errors.GitHubAPIError` (or a
    subclass) on failure; callers decide whether that is fatal.
    """

    async def get_user(self, login: str) -> GitHubUser:
        """Return the public profile for ``login``."""
        ...

    async def get_pull_request(self, repo: RepositoryRef, number: int) -> PullRequest:
        """Return a fresh snapshot of pull request ``number``."""
        ...

    async def list_pull_requests_for_commit(
        self, repo: RepositoryRef, sha: str
    ) -> list[PullRequest]:
        """Return pull requests whose head includes commit ``sha``."""
        ...

    async def list_check_runs_for_ref(
        self, repo: RepositoryRef, ref: str
    ) -> list[CheckRun]:
        """Return every check run reported for ``ref``."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    api_url: str = "https://api.github.com"
    timeout_s: float = 20.0
    user_agent: str = "herald/0.1"

    @classmethod
    def from_env(cls) -> GitHubRestConfig:
        """Build configuration from ``HERALD_GITHUB_TOKEN``.

        ``HERALD_GITHUB_API_URL`` overrides the API root for GitHub
        Enterprise installations.
        """
        token = os.environ.get("HERALD_GITHUB_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()
        api_url = os.environ.get("HERALD_GITHUB_API_URL", "").strip()
        if api_url:
            return cls(token=token, api_url=api_url)
        return cls(token=token)


_HTTP_ERROR_STATUS_THRESHOLD = 400
_CHECK_RUNS_PER_PAGE = 100


class GitHubRestClient:
    """httpx implementation of :class:`GitHubClient`."""

    def __init__(
        self,
        config: GitHubRestConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._base_url = config.api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_user(self, login: str) -> GitHubUser:
        """Return the public profile for ``login``."""
        return await self._get(f"/users/{login}", GitHubUser)

    async def get_pull_request(self, repo: RepositoryRef, number: int) -> PullRequest:
        """Return a fresh snapshot of pull request ``number``."""
        return await self._get(
            f"/repos/{repo.owner}/{repo.name}/pulls/{number}", PullRequest
        )

    async def list_pull_requests_for_commit(
        self, repo: RepositoryRef, sha: str
    ) -> list[PullRequest]:
        """Return pull requests associated with commit ``sha``."""
        return await self._get(
            f"/repos/{repo.owner}/{repo.name}/commits/{sha}/pulls",
            list[PullRequest],
        )

    async def list_check_runs_for_ref(
        self, repo: RepositoryRef, ref: str
    ) -> list[CheckRun]:
        """Return every check run for ``ref``, following pagination."""
        path = f"/repos/{repo.owner}/{repo.name}/commits/{ref}/check-runs"
        runs: list[CheckRun] = []
        page_number = 1
        while True:
            page = await self._get(
                path,
                CheckRunPage,
                params={"per_page": _CHECK_RUNS_PER_PAGE, "page": page_number},
            )
            runs.extend(page.check_runs)
            if not page.check_runs or len(runs) >= page.total_count:
                return runs
            page_number += 1

    async def _get(
        self,
        path: str,
        result_type: type[T],
        *,
        params: dict[str, typ.Any] | None = None,
    ) -> T:
        """Issue a GET request and decode the body into ``result_type``."""
        try:
            response = await self._client.get(
                f"{self._base_url}{path}", params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport(path, exc) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, path)

        try:
            return msgspec.json.decode(response.content, type=result_type)
        except (msgspec.ValidationError, msgspec.DecodeError) as exc:
            raise GitHubResponseShapeError.invalid(path, str(exc)) from exc
