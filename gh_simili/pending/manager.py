"""Pending actions stored on the issue itself.

A pending action has two halves that are always written together:

- a status label (``pending-transfer`` / ``pending-close``) that makes the
  issue discoverable by listing issues by label, and
- a comment carrying the serialized action inside an HTML comment marker,
  ``<!-- simili-pending-action: {...} -->``, which is the payload.

Nothing is cached locally; every run rebuilds its view from the tracker.
An action ends when its label is removed, either after execution or on
cancellation. The carrying comment stays in place.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from enum import Enum

from github.GithubException import GithubException
from pydantic import BaseModel, Field, ValidationError

from ..errors import PendingActionError
from ..github_client.client import GitHubClient
from ..github_client.models import GitHubIssue

logger = logging.getLogger(__name__)

LABEL_PENDING_TRANSFER = "pending-transfer"
LABEL_PENDING_CLOSE = "pending-close"

METADATA_PATTERN = re.compile(r"<!-- simili-pending-action: (\{.*?\}) -->", re.DOTALL)


class ActionType(str, Enum):
    """Kinds of delayed action."""

    TRANSFER = "transfer"
    CLOSE = "close"


class PendingAction(BaseModel):
    """A scheduled transfer or close that has not run yet."""

    type: ActionType
    org: str
    repo: str
    issue_number: int
    target: str = Field(
        description="Target repo for a transfer, or original issue URL for a close"
    )
    comment_id: int = Field(0, description="Comment carrying this action")
    scheduled_at: datetime
    expires_at: datetime
    metadata: dict[str, str] = Field(default_factory=dict)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once ``now`` is strictly past ``expires_at``."""
        now = now or datetime.now(timezone.utc)
        return now > self.expires_at


def label_for_action_type(action_type: ActionType | str) -> str:
    """Status label for an action type.

    Raises:
        PendingActionError: For an unknown action type
    """
    if action_type == ActionType.TRANSFER:
        return LABEL_PENDING_TRANSFER
    if action_type == ActionType.CLOSE:
        return LABEL_PENDING_CLOSE
    raise PendingActionError(f"unknown action type: {action_type}")


def build_pending_action(
    issue: GitHubIssue,
    action_type: ActionType,
    target: str,
    delay_hours: int,
    comment_id: int = 0,
    now: datetime | None = None,
) -> PendingAction:
    """Create an action for ``issue`` that expires ``delay_hours`` from now."""
    scheduled_at = now or datetime.now(timezone.utc)
    return PendingAction(
        type=action_type,
        org=issue.org,
        repo=issue.repo,
        issue_number=issue.number,
        target=target,
        comment_id=comment_id,
        scheduled_at=scheduled_at,
        expires_at=scheduled_at + timedelta(hours=delay_hours),
    )


def format_pending_action_metadata(action: PendingAction) -> str:
    """Serialize an action into its HTML comment marker."""
    exclude = None if action.metadata else {"metadata"}
    data = action.model_dump_json(exclude=exclude)
    return f"<!-- simili-pending-action: {data} -->"


def parse_pending_action_metadata(comment_body: str) -> PendingAction:
    """Parse the action embedded in a comment body.

    Raises:
        PendingActionError: If the body has no marker or the payload is invalid
    """
    match = METADATA_PATTERN.search(comment_body)
    if not match:
        raise PendingActionError("metadata not found")

    try:
        return PendingAction.model_validate_json(match.group(1))
    except ValidationError as e:
        raise PendingActionError(f"failed to parse metadata: {e}") from e


class PendingActionManager:
    """Schedules, discovers and cancels pending actions."""

    def __init__(self, gh: GitHubClient):
        self.gh = gh

    def schedule_transfer(
        self,
        issue: GitHubIssue,
        target_repo: str,
        comment_id: int,
        delay_hours: int,
    ) -> PendingAction:
        """Label ``issue`` as pending transfer to ``target_repo``.

        The comment ``comment_id`` must already carry the action metadata.
        """
        action = build_pending_action(
            issue, ActionType.TRANSFER, target_repo, delay_hours, comment_id
        )
        self.gh.add_labels(
            issue.org, issue.repo, issue.number, [LABEL_PENDING_TRANSFER]
        )
        logger.info(
            f"Scheduled transfer of {issue.full_repo}#{issue.number} to "
            f"{target_repo} at {action.expires_at.isoformat()}"
        )
        return action

    def schedule_close(
        self,
        issue: GitHubIssue,
        original_issue_url: str,
        comment_id: int,
        delay_hours: int,
    ) -> PendingAction:
        """Label ``issue`` as pending close in favor of ``original_issue_url``."""
        action = build_pending_action(
            issue, ActionType.CLOSE, original_issue_url, delay_hours, comment_id
        )
        self.gh.add_labels(issue.org, issue.repo, issue.number, [LABEL_PENDING_CLOSE])
        logger.info(
            f"Scheduled close of {issue.full_repo}#{issue.number} at "
            f"{action.expires_at.isoformat()}"
        )
        return action

    def find_pending_actions(self, org: str, repo: str) -> list[PendingAction]:
        """Find every pending action in a repository.

        Issues that carry a pending label but no usable metadata are skipped,
        so one malformed issue does not stop the scan.
        """
        actions: list[PendingAction] = []

        for action_type in (ActionType.TRANSFER, ActionType.CLOSE):
            label = label_for_action_type(action_type)
            for issue in self.gh.list_issues_by_label(org, repo, label):
                try:
                    action = self.extract_pending_action(issue, action_type)
                except (ValueError, GithubException) as e:
                    logger.warning(
                        f"Skipping {issue.full_repo}#{issue.number}: cannot read "
                        f"pending {action_type.value} metadata: {e}"
                    )
                    continue
                if action is not None:
                    actions.append(action)

        return actions

    def extract_pending_action(
        self, issue: GitHubIssue, action_type: ActionType
    ) -> PendingAction | None:
        """Read the newest matching action from the issue's comments."""
        comments = self.gh.list_comments(issue.org, issue.repo, issue.number)

        for comment in reversed(comments):
            try:
                action = parse_pending_action_metadata(comment.body)
            except PendingActionError as e:
                if METADATA_PATTERN.search(comment.body):
                    logger.warning(
                        f"Ignoring comment {comment.id} on "
                        f"{issue.full_repo}#{issue.number}: {e}"
                    )
                continue

            if action.type != action_type or action.issue_number != issue.number:
                continue

            action.org = issue.org
            action.repo = issue.repo
            if not action.comment_id:
                action.comment_id = comment.id
            return action

        logger.warning(
            f"{issue.full_repo}#{issue.number} is labeled "
            f"'{label_for_action_type(action_type)}' but has no {action_type.value} "
            f"metadata"
        )
        return None

    def cancel(self, action: PendingAction) -> None:
        """Cancel an action by removing its status label.

        Raises:
            PendingActionError: For an unknown action type
        """
        label = label_for_action_type(action.type)
        self.gh.remove_label(action.org, action.repo, action.issue_number, label)
        logger.info(
            f"Removed '{label}' from "
            f"{action.org}/{action.repo}#{action.issue_number}"
        )

    def complete(self, action: PendingAction) -> None:
        """Retire an action after it ran. Same label removal as ``cancel``."""
        label = label_for_action_type(action.type)
        self.gh.remove_label(action.org, action.repo, action.issue_number, label)
