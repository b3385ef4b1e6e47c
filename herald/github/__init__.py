"""GitHub REST client and payload models."""

from __future__ import annotations

from .client import GitHubClient, GitHubRestClient, GitHubRestConfig
from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import (
    CheckRun,
    CheckRunOutput,
    CheckRunPage,
    CheckSuite,
    Comment,
    Deployment,
    DeploymentStatus,
    GitHubUser,
    GitRef,
    IssueRef,
    MergeableState,
    PullRequest,
    PullRequestLink,
    RepositoryRef,
    Review,
)

__all__ = [
    "CheckRun",
    "CheckRunOutput",
    "CheckRunPage",
    "CheckSuite",
    "Comment",
    "Deployment",
    "DeploymentStatus",
    "GitHubAPIError",
    "GitHubClient",
    "GitHubConfigError",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitHubRestConfig",
    "GitHubUser",
    "GitRef",
    "IssueRef",
    "MergeableState",
    "PullRequest",
    "PullRequestLink",
    "RepositoryRef",
    "Review",
]
