"""Errors raised by the GitHub REST client."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API call fails or returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, path: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub API HTTP {status_code} for {path}", status_code=status_code)

    @classmethod
    def transport(cls, path: str, exc: BaseException) -> GitHubAPIError:
        """Return an error for requests that never produced a response."""
        return cls(f"GitHub API request to {path} failed: {exc}")


class GitHubResponseShapeError(GitHubAPIError):
    """Raised when a GitHub response does not match the expected shape."""

    @classmethod
    def invalid(cls, path: str, detail: str) -> GitHubResponseShapeError:
        """Return an error for a response body that failed validation."""
        return cls(f"GitHub API response for {path} is malformed: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("HERALD_GITHUB_TOKEN is required for GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
