"""GitHub API client using PyGitHub."""

import logging
import os
import time
from collections.abc import Callable
from typing import TypeVar

from github import Github
from github.GithubException import (
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)
from github.Issue import Issue
from github.IssueComment import IssueComment
from github.Label import Label
from github.NamedUser import NamedUser
from github.Organization import Organization
from github.Reaction import Reaction
from github.Repository import Repository

from .models import (
    GitHubComment,
    GitHubIssue,
    GitHubLabel,
    GitHubReaction,
    GitHubUser,
    parse_repo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSFER_ISSUE_MUTATION = """
mutation($issueId: ID!, $repositoryId: ID!) {
  transferIssue(input: {issueId: $issueId, repositoryId: $repositoryId}) {
    issue {
      number
      url
    }
  }
}
"""


class GitHubClient:
    """GitHub API client with rate limiting and authentication.

    One instance represents one identity. Transfer triage uses two: a bot
    identity for comments and labels, and an elevated identity for the
    privileged transfer itself.
    """

    def __init__(self, token: str | None = None, token_env: str = "GITHUB_TOKEN"):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub token. If None, reads from the ``token_env`` env var.
            token_env: Environment variable holding the token.
        """
        self.token = token or os.getenv(token_env)
        if not self.token:
            raise ValueError(
                f"GitHub token is required. Set {token_env} environment variable."
            )

        self.github = Github(self.token)

    def _check_rate_limit(self) -> None:
        """Check rate limit and sleep if necessary."""
        try:
            rate_limit = self.github.get_rate_limit()
            remaining = rate_limit.rate.remaining
            logger.debug(f"GitHub API rate limit: {remaining} requests remaining")

            if remaining < 10:
                reset_time = rate_limit.rate.reset.timestamp()
                sleep_time = reset_time - time.time() + 1
                logger.warning(
                    f"Rate limit low, sleeping for {sleep_time:.1f} seconds..."
                )
                time.sleep(sleep_time)

        except GithubException as e:
            # Not critical: the real call will surface any persistent failure
            logger.debug(f"Rate limit check failed: {e}")

    def _call(self, description: str, operation: Callable[[], T]) -> T:
        """Run an API operation, waiting out rate limits once per hit.

        Raises:
            ValueError: If the repository or issue does not exist
            GithubException: For other API errors
        """
        self._check_rate_limit()

        try:
            return operation()
        except UnknownObjectException:
            raise ValueError(f"Not found while trying to {description}")
        except RateLimitExceededException:
            logger.warning(f"Rate limit exceeded during {description}, waiting...")
            time.sleep(60)
            return self._call(description, operation)
        except GithubException as e:
            logger.error(f"Error trying to {description}: {e}")
            raise

    def _convert_user(self, github_user: NamedUser | Organization) -> GitHubUser:
        """Convert PyGitHub user to our model."""
        return GitHubUser(login=github_user.login, id=github_user.id)

    def _convert_label(self, github_label: Label) -> GitHubLabel:
        """Convert PyGitHub label to our model."""
        return GitHubLabel(
            name=github_label.name,
            color=github_label.color,
            description=github_label.description,
        )

    def _convert_comment(self, github_comment: IssueComment) -> GitHubComment:
        """Convert PyGitHub comment to our model."""
        return GitHubComment(
            id=github_comment.id,
            user=self._convert_user(github_comment.user),
            body=github_comment.body or "",
            created_at=github_comment.created_at,
            updated_at=github_comment.updated_at,
        )

    def _convert_reaction(self, github_reaction: Reaction) -> GitHubReaction:
        return GitHubReaction(
            content=github_reaction.content,
            user=self._convert_user(github_reaction.user),
        )

    def _convert_issue(self, github_issue: Issue, org: str, repo: str) -> GitHubIssue:
        """Convert PyGitHub issue to our model."""
        return GitHubIssue(
            org=org,
            repo=repo,
            number=github_issue.number,
            title=github_issue.title,
            body=github_issue.body,
            state=github_issue.state,
            labels=[self._convert_label(label) for label in github_issue.labels],
            user=self._convert_user(github_issue.user),
            created_at=github_issue.created_at,
            updated_at=github_issue.updated_at,
            html_url=github_issue.html_url,
        )

    def get_repository(self, org: str, repo: str) -> Repository:
        """Get repository object."""
        try:
            return self.github.get_repo(f"{org}/{repo}")
        except UnknownObjectException:
            raise ValueError(f"Repository {org}/{repo} not found")

    def _get_github_issue(self, org: str, repo: str, issue_number: int) -> Issue:
        return self.get_repository(org, repo).get_issue(issue_number)

    def repo_exists(self, org: str, repo: str) -> bool:
        """Check whether a repository is visible to this identity."""
        self._check_rate_limit()

        try:
            self.github.get_repo(f"{org}/{repo}")
            return True
        except UnknownObjectException:
            return False

    def get_issue(self, org: str, repo: str, issue_number: int) -> GitHubIssue:
        """Get a specific issue with all its details."""
        github_issue = self._call(
            f"fetch issue #{issue_number} in {org}/{repo}",
            lambda: self._get_github_issue(org, repo, issue_number),
        )
        return self._convert_issue(github_issue, org, repo)

    def list_issues_by_label(
        self, org: str, repo: str, label: str, state: str = "open"
    ) -> list[GitHubIssue]:
        """List issues carrying a label. Pull requests are skipped.

        Args:
            org: Organization name
            repo: Repository name
            label: Label name to filter by
            state: Issue state (open, closed, all)

        Returns:
            List of GitHubIssue objects
        """

        def operation() -> list[GitHubIssue]:
            repository = self.get_repository(org, repo)
            return [
                self._convert_issue(github_issue, org, repo)
                for github_issue in repository.get_issues(state=state, labels=[label])
                if github_issue.pull_request is None
            ]

        return self._call(f"list issues labeled '{label}' in {org}/{repo}", operation)

    def list_comments(
        self, org: str, repo: str, issue_number: int
    ) -> list[GitHubComment]:
        """List comments on an issue in chronological order."""

        def operation() -> list[GitHubComment]:
            github_issue = self._get_github_issue(org, repo, issue_number)
            return [self._convert_comment(c) for c in github_issue.get_comments()]

        return self._call(f"list comments on issue #{issue_number}", operation)

    def add_issue_comment(
        self, org: str, repo: str, issue_number: int, comment: str
    ) -> int:
        """Add a comment to an issue.

        Args:
            org: Organization name
            repo: Repository name
            issue_number: Issue number
            comment: Comment text to add

        Returns:
            ID of the created comment

        Raises:
            ValueError: If repository or issue not found
            GithubException: For other API errors
        """

        def operation() -> int:
            github_issue = self._get_github_issue(org, repo, issue_number)
            return github_issue.create_comment(comment).id

        comment_id = self._call(f"comment on issue #{issue_number}", operation)
        logger.info(f"Added comment {comment_id} to {org}/{repo}#{issue_number}")
        return comment_id

    def add_labels(
        self, org: str, repo: str, issue_number: int, labels: list[str]
    ) -> None:
        """Add labels to an issue, keeping the ones already present."""
        self._call(
            f"add labels to issue #{issue_number}",
            lambda: self._get_github_issue(org, repo, issue_number).add_to_labels(
                *labels
            ),
        )
        logger.info(f"Added labels {labels} to {org}/{repo}#{issue_number}")

    def remove_label(self, org: str, repo: str, issue_number: int, label: str) -> None:
        """Remove a label from an issue. Removing an absent label is a no-op."""
        github_issue = self._call(
            f"fetch issue #{issue_number} in {org}/{repo}",
            lambda: self._get_github_issue(org, repo, issue_number),
        )
        try:
            self._call(
                f"remove label '{label}' from issue #{issue_number}",
                lambda: github_issue.remove_from_labels(label),
            )
        except ValueError:
            logger.info(f"Label '{label}' not present on {org}/{repo}#{issue_number}")
            return
        logger.info(f"Removed label '{label}' from {org}/{repo}#{issue_number}")

    def close_issue(
        self, org: str, repo: str, issue_number: int, reason: str = "not_planned"
    ) -> None:
        """Close an issue with the given state reason."""
        self._call(
            f"close issue #{issue_number}",
            lambda: self._get_github_issue(org, repo, issue_number).edit(
                state="closed", state_reason=reason
            ),
        )
        logger.info(f"Closed {org}/{repo}#{issue_number} ({reason})")

    def transfer_issue(
        self, org: str, repo: str, issue_number: int, target_repo: str
    ) -> int:
        """Transfer an issue to another repository.

        The REST API has no transfer endpoint, so this goes through the
        GraphQL ``transferIssue`` mutation and needs a token with admin
        rights on both repositories.

        Returns:
            Issue number in the target repository
        """
        target_org, target_name = parse_repo(target_repo)

        def operation() -> int:
            github_issue = self._get_github_issue(org, repo, issue_number)
            target = self.get_repository(target_org, target_name)
            _, data = self.github.requester.graphql_query(
                TRANSFER_ISSUE_MUTATION,
                {"issueId": github_issue.node_id, "repositoryId": target.node_id},
            )
            return int(data["data"]["transferIssue"]["issue"]["number"])

        new_number = self._call(
            f"transfer issue #{issue_number} to {target_repo}", operation
        )
        logger.info(
            f"Transferred {org}/{repo}#{issue_number} -> {target_repo}#{new_number}"
        )
        return new_number

    def was_already_transferred(self, org: str, repo: str, issue_number: int) -> bool:
        """Check whether the issue no longer lives in ``org/repo``.

        GitHub redirects the old issue location after a transfer, so the
        fetched issue reports the repository it has moved to.
        """
        github_issue = self._call(
            f"fetch issue #{issue_number} in {org}/{repo}",
            lambda: self._get_github_issue(org, repo, issue_number),
        )
        current = "/".join(github_issue.repository_url.rstrip("/").split("/")[-2:])
        return current.lower() != f"{org}/{repo}".lower()

    def list_comment_reactions(
        self, org: str, repo: str, issue_number: int, comment_id: int
    ) -> list[GitHubReaction]:
        """Fetch reactions on an issue comment."""

        def operation() -> list[GitHubReaction]:
            github_issue = self._get_github_issue(org, repo, issue_number)
            comment = github_issue.get_comment(comment_id)
            return [self._convert_reaction(r) for r in comment.get_reactions()]

        return self._call(f"list reactions on comment {comment_id}", operation)

    def has_reaction(
        self,
        org: str,
        repo: str,
        issue_number: int,
        comment_id: int,
        reaction_type: str,
    ) -> bool:
        """Check if a comment has a specific reaction type from any user."""
        reactions = self.list_comment_reactions(org, repo, issue_number, comment_id)
        return any(r.content == reaction_type for r in reactions)

    def get_reaction_users(
        self,
        org: str,
        repo: str,
        issue_number: int,
        comment_id: int,
        reaction_type: str,
    ) -> list[str]:
        """Return the logins of users who reacted with ``reaction_type``."""
        reactions = self.list_comment_reactions(org, repo, issue_number, comment_id)
        return [r.user.login for r in reactions if r.content == reaction_type]

    def check_reaction_decision(
        self,
        org: str,
        repo: str,
        issue_number: int,
        comment_id: int,
        approve_reaction: str,
        cancel_reaction: str,
    ) -> str:
        """Read the verdict users left on a comment.

        Returns:
            ``"cancel"``, ``"approve"`` or ``"none"``. Cancel wins when both
            reactions are present.
        """
        contents = {
            r.content
            for r in self.list_comment_reactions(org, repo, issue_number, comment_id)
        }
        if cancel_reaction in contents:
            return "cancel"
        if approve_reaction in contents:
            return "approve"
        return "none"
