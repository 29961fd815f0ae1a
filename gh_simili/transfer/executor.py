"""Issue transfer execution with separate comment and transfer identities."""

import logging

from github.GithubException import GithubException

from ..config import TransferRule
from ..errors import TransferError
from ..github_client.client import GitHubClient
from ..github_client.models import GitHubIssue, parse_repo
from ..vectordb.client import VectorIndexClient, VectorStoreError, collection_name
from .comments import format_transfer_comment

logger = logging.getLogger(__name__)


class TransferExecutor:
    """Moves issues between repositories.

    ``transfer_client`` holds the elevated identity and is the only one used
    for the privileged transfer and for looking up the target repository.
    ``comment_client`` is the bot identity used for everything users see.
    """

    def __init__(
        self,
        transfer_client: GitHubClient,
        comment_client: GitHubClient,
        vector_index: VectorIndexClient | None = None,
        dry_run: bool = False,
        revert_reaction: str | None = None,
        collection_prefix: str = "simili",
    ):
        """Initialize the executor.

        Args:
            transfer_client: Client with admin rights on source and target repos
            comment_client: Client posting comments under the bot identity
            vector_index: Similarity index to clean up after a move
            dry_run: Stop before any mutation
            revert_reaction: When set, the notification explains that this
                reaction moves the issue back (optimistic transfers)
            collection_prefix: Prefix of the per-organization index collection
        """
        self.transfer_client = transfer_client
        self.comment_client = comment_client
        self.vector_index = vector_index
        self.dry_run = dry_run
        self.revert_reaction = revert_reaction
        self.collection_prefix = collection_prefix

    def transfer(
        self,
        issue: GitHubIssue,
        target_repo: str,
        rule: TransferRule | None = None,
        reason: str | None = None,
    ) -> int | None:
        """Transfer ``issue`` to ``target_repo`` at most once.

        Args:
            issue: Issue to move
            target_repo: Destination as ``org/repo``
            rule: Rule that matched, or None when AI routing picked the target
            reason: Optional explanation shown in the notification

        Returns:
            Issue number in the target repository if this call moved the
            issue; None for a dry run or when it had already been transferred

        Raises:
            TransferError: If the target is invalid or a tracker call fails
        """
        target_org, target_name = self._parse_target(target_repo)
        self._ensure_target_exists(target_org, target_name)

        try:
            transferred = self.comment_client.was_already_transferred(
                issue.org, issue.repo, issue.number
            )
        except (ValueError, GithubException) as e:
            raise TransferError(
                f"failed to check transfer status: {e}", stage="transfer_status"
            ) from e
        if transferred:
            logger.info(
                f"{issue.full_repo}#{issue.number} was already transferred, skipping"
            )
            return None

        if self.dry_run:
            logger.info(
                f"[dry-run] Would transfer {issue.full_repo}#{issue.number} "
                f"to {target_repo}"
            )
            return None

        comment = format_transfer_comment(
            target_repo,
            rule,
            issue.org,
            issue.repo,
            reason=reason,
            revert_reaction=self.revert_reaction,
        )
        try:
            self.comment_client.add_issue_comment(
                issue.org, issue.repo, issue.number, comment
            )
        except (ValueError, GithubException) as e:
            raise TransferError(
                f"failed to post transfer comment: {e}", stage="notify"
            ) from e

        return self.execute_transfer(issue, target_repo)

    def execute_transfer(self, issue: GitHubIssue, target_repo: str) -> int:
        """Run the privileged transfer and drop the stale index entry.

        No notification and no idempotency check; callers handle both.

        Returns:
            Issue number in the target repository
        """
        try:
            new_number = self.transfer_client.transfer_issue(
                issue.org, issue.repo, issue.number, target_repo
            )
        except (ValueError, GithubException) as e:
            raise TransferError(
                f"failed to transfer issue: {e}", stage="transfer"
            ) from e

        self._remove_from_index(issue)
        return new_number

    def _parse_target(self, target_repo: str) -> tuple[str, str]:
        try:
            return parse_repo(target_repo)
        except ValueError as e:
            raise TransferError(str(e), stage="parse_target") from e

    def _ensure_target_exists(self, target_org: str, target_name: str) -> None:
        try:
            exists = self.transfer_client.repo_exists(target_org, target_name)
        except GithubException as e:
            raise TransferError(
                f"failed to check target repo: {e}", stage="target_lookup"
            ) from e
        if not exists:
            raise TransferError(
                f"target repo {target_org}/{target_name} does not exist",
                stage="target_lookup",
            )

    def _remove_from_index(self, issue: GitHubIssue) -> None:
        # The issue is re-indexed under its new repository on the next sync
        if self.vector_index is None:
            return
        collection = collection_name(issue.org, self.collection_prefix)
        try:
            self.vector_index.delete(collection, issue.uuid())
        except VectorStoreError as e:
            logger.warning(
                f"Failed to delete old vector for {issue.full_repo}#{issue.number}: {e}"
            )
