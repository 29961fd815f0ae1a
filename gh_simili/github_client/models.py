"""Pydantic models for GitHub data structures.

These models map directly to GitHub's REST API v3 response structures.
API Reference: https://docs.github.com/en/rest/issues
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


def parse_repo(full_name: str) -> tuple[str, str]:
    """Split an ``org/repo`` string into its parts.

    Raises:
        ValueError: If the string is not of the form ``org/repo``
    """
    parts = full_name.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"Invalid repository '{full_name}'. Expected format: org/repo"
        )
    return parts[0], parts[1]


class GitHubUser(BaseModel):
    """GitHub user model representing a user account.

    API Reference: https://docs.github.com/en/rest/users/users
    """

    login: str = Field(..., description="GitHub username/login (string)")
    id: int = Field(..., description="Unique user identifier (integer)")


class GitHubLabel(BaseModel):
    """GitHub label model representing repository labels.

    API Reference: https://docs.github.com/en/rest/issues/labels
    """

    name: str = Field(..., description="Name of the label (string)")
    color: str = Field(
        "ededed", description="Hexadecimal color code without leading # (string)"
    )
    description: str | None = Field(
        None, description="Short description of the label (string, max 100 characters)"
    )


class GitHubComment(BaseModel):
    """GitHub comment model representing issue comments.

    API Reference: https://docs.github.com/en/rest/issues/comments
    """

    id: int = Field(..., description="Unique comment identifier (integer)")
    user: GitHubUser = Field(..., description="Comment author details")
    body: str = Field("", description="Text content of the comment (string)")
    created_at: datetime = Field(
        ..., description="Timestamp of comment creation (ISO 8601)"
    )
    updated_at: datetime = Field(
        ..., description="Timestamp of last comment update (ISO 8601)"
    )


class GitHubReaction(BaseModel):
    """Reaction left on an issue comment.

    API Reference: https://docs.github.com/en/rest/reactions/reactions
    """

    content: str = Field(
        ...,
        description="Reaction type: +1, -1, laugh, confused, heart, hooray, "
        "rocket or eyes",
    )
    user: GitHubUser = Field(..., description="User who reacted")


class GitHubIssue(BaseModel):
    """GitHub issue model with the repository it currently lives in.

    API Reference: https://docs.github.com/en/rest/issues/issues
    """

    org: str = Field(..., description="Organization (owner) of the repository")
    repo: str = Field(..., description="Repository name")
    number: int = Field(..., description="Issue number within the repository (integer)")
    title: str = Field(..., description="Short description/title of the issue (string)")
    body: str | None = Field(
        None, description="Detailed description of the issue in markdown (string)"
    )
    state: str = Field("open", description="Current state: 'open', 'closed' (string)")
    labels: list[GitHubLabel] = Field(
        default_factory=list, description="Array of labels attached to the issue"
    )
    user: GitHubUser = Field(..., description="Creator/author of the issue")
    created_at: datetime | None = Field(
        None, description="Timestamp of issue creation (ISO 8601)"
    )
    updated_at: datetime | None = Field(
        None, description="Timestamp of last issue update (ISO 8601)"
    )
    html_url: str | None = Field(None, description="Browser URL of the issue")

    @property
    def full_repo(self) -> str:
        return f"{self.org}/{self.repo}"

    @property
    def author(self) -> str:
        return self.user.login

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    def has_label(self, name: str) -> bool:
        return name.lower() in {label.lower() for label in self.label_names}

    def uuid(self) -> str:
        """Stable identifier used as the similarity-index key.

        Derived from the issue location, so it is identical on every run.
        """
        url = f"https://github.com/{self.org}/{self.repo}/issues/{self.number}"
        return str(uuid.uuid5(uuid.NAMESPACE_URL, url.lower()))
