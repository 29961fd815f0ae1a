"""GitHub client package for API interaction."""

from .client import GitHubClient
from .models import (
    GitHubComment,
    GitHubIssue,
    GitHubLabel,
    GitHubReaction,
    GitHubUser,
    parse_repo,
)

__all__ = [
    "GitHubClient",
    "GitHubUser",
    "GitHubLabel",
    "GitHubComment",
    "GitHubReaction",
    "GitHubIssue",
    "parse_repo",
]
