"""Detect and perform user-requested reverts of optimistic transfers."""

import logging
from dataclasses import dataclass

from github.GithubException import GithubException

from ..config import Config
from ..errors import TransferError
from ..github_client.client import GitHubClient
from ..github_client.models import GitHubIssue
from .comments import format_revert_comment, parse_transfer_source_metadata
from .executor import TransferExecutor

logger = logging.getLogger(__name__)


@dataclass
class RevertAction:
    """A request to move an issue back where it came from."""

    source_org: str
    source_repo: str
    comment_id: int

    @property
    def target_repo(self) -> str:
        return f"{self.source_org}/{self.source_repo}"


class RevertManager:
    """Looks for the cancel reaction on transfer notifications."""

    def __init__(self, gh: GitHubClient, config: Config):
        self.gh = gh
        self.config = config

    def check_for_revert(self, issue: GitHubIssue) -> RevertAction | None:
        """Return a revert request if a user reacted to a transfer notice.

        Only active when delayed actions and optimistic transfers are both
        enabled. Reaction lookups that fail are skipped so one bad comment
        does not block the rest of the scan.
        """
        delayed = self.config.defaults.delayed_actions
        if not delayed.enabled or not delayed.optimistic_transfers:
            return None

        comments = self.gh.list_comments(issue.org, issue.repo, issue.number)

        for comment in comments:
            metadata = parse_transfer_source_metadata(comment.body)
            if metadata is None:
                continue

            # Notice left behind by a transfer that has since been reverted
            if f"{metadata.org}/{metadata.repo}".lower() == issue.full_repo.lower():
                continue

            try:
                has_revert = self.gh.has_reaction(
                    issue.org,
                    issue.repo,
                    issue.number,
                    comment.id,
                    delayed.cancel_reaction,
                )
            except (ValueError, GithubException) as e:
                logger.warning(f"Could not read reactions on comment {comment.id}: {e}")
                continue

            if has_revert:
                return RevertAction(
                    source_org=metadata.org,
                    source_repo=metadata.repo,
                    comment_id=comment.id,
                )

        return None

    def revert(
        self, issue: GitHubIssue, action: RevertAction, executor: TransferExecutor
    ) -> None:
        """Announce the revert and move the issue back.

        The announcement doubles as the marker that keeps the next transfer
        check from sending the issue straight back out.
        """
        if executor.dry_run:
            logger.info(
                f"[dry-run] Would revert {issue.full_repo}#{issue.number} "
                f"to {action.target_repo}"
            )
            return

        try:
            self.gh.add_issue_comment(
                issue.org,
                issue.repo,
                issue.number,
                format_revert_comment(action.target_repo),
            )
        except (ValueError, GithubException) as e:
            raise TransferError(
                f"failed to post revert comment: {e}", stage="notify"
            ) from e

        executor.execute_transfer(issue, action.target_repo)
        logger.info(
            f"Reverted {issue.full_repo}#{issue.number} to {action.target_repo}"
        )
