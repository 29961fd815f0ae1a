"""Transfer triage orchestration.

Two passes share the same collaborators:

- ``process_issue`` runs on a new or edited issue: decide, then transfer now
  or schedule a delayed transfer.
- ``process_pending`` runs on a schedule: rediscover pending actions from
  labels and comments, then execute, cancel or keep waiting.

Every decision is rebuilt from tracker state, so either pass can be re-run
or interrupted safely.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from github.GithubException import GithubException

from ..ai.agents import LLMProvider
from ..config import Config
from ..github_client.client import GitHubClient
from ..github_client.models import GitHubIssue, parse_repo
from ..pending.manager import (
    LABEL_PENDING_CLOSE,
    LABEL_PENDING_TRANSFER,
    ActionType,
    PendingAction,
    PendingActionManager,
    build_pending_action,
)
from ..transfer.comments import (
    format_cancelled_comment,
    format_close_comment,
    format_pending_close_comment,
    format_pending_transfer_comment,
)
from ..transfer.decision import TransferCheck, TransferDecision
from ..transfer.executor import TransferExecutor
from ..transfer.revert import RevertAction, RevertManager
from ..vectordb.client import VectorIndexClient

logger = logging.getLogger(__name__)


@dataclass
class IssueResult:
    """What happened to a single issue in the first pass."""

    org: str
    repo: str
    issue_number: int
    target: str = ""
    source: str = ""
    transferred: bool = False
    new_issue_number: int | None = None
    scheduled: bool = False
    closed: bool = False
    pending_action: PendingAction | None = None
    skip_reason: str | None = None


@dataclass
class PendingOutcome:
    """What happened to one pending action during reconciliation.

    ``outcome`` is one of ``executed``, ``cancelled``, ``reverted`` or
    ``waiting``.
    """

    action: PendingAction
    outcome: str
    detail: str = ""


class TransferProcessor:
    """Wires the decision step, the pending store and the executor together."""

    def __init__(
        self,
        config: Config,
        comment_client: GitHubClient,
        transfer_client: GitHubClient,
        llm: LLMProvider | None = None,
        vector_index: VectorIndexClient | None = None,
        execute: bool = False,
        dry_run: bool = False,
    ):
        """Initialize the processor.

        Args:
            config: Loaded configuration
            comment_client: Bot identity for comments, labels and reads
            transfer_client: Elevated identity for transfers
            llm: Language model for AI routing, if enabled
            vector_index: Similarity index to clean up after transfers
            execute: Apply actions; otherwise only analyze
            dry_run: Go through the motions without mutating anything
        """
        self.config = config
        self.gh = comment_client
        self.execute = execute
        self.dry_run = dry_run

        delayed = config.defaults.delayed_actions
        self.delayed = delayed
        revert_reaction = (
            delayed.cancel_reaction
            if delayed.enabled and delayed.optimistic_transfers
            else None
        )

        self.check = TransferCheck(config, comment_client, llm)
        self.pending = PendingActionManager(comment_client)
        self.reverts = RevertManager(comment_client, config)
        self.executor = TransferExecutor(
            transfer_client,
            comment_client,
            vector_index,
            dry_run=dry_run,
            revert_reaction=revert_reaction,
            collection_prefix=config.vectordb.collection_prefix,
        )

    @property
    def mutating(self) -> bool:
        return self.execute and not self.dry_run

    def process_issue(self, issue: GitHubIssue) -> IssueResult:
        """First pass: transfer now, schedule a transfer, or leave alone."""
        result = IssueResult(
            org=issue.org, repo=issue.repo, issue_number=issue.number
        )

        decision = self.check.evaluate(issue)
        if not decision.target:
            result.skip_reason = decision.skip_reason or "no transfer target"
            return result

        result.target = decision.target
        result.source = "ai" if decision.routing else "rule"

        if not self.execute:
            result.pending_action = decision.pending_action
            logger.info(
                f"Read-only mode: would transfer {issue.full_repo}#{issue.number} "
                f"to {decision.target}"
            )
            return result

        action = decision.pending_action
        if action is not None and not self.delayed.optimistic_transfers:
            self._schedule_transfer(issue, decision, action, result)
            return result

        new_number = self.executor.transfer(
            issue, decision.target, decision.rule, reason=decision.reason
        )
        result.transferred = new_number is not None
        result.new_issue_number = new_number
        return result

    def _schedule_transfer(
        self,
        issue: GitHubIssue,
        decision: TransferDecision,
        action: PendingAction,
        result: IssueResult,
    ) -> None:
        current = self.gh.get_issue(issue.org, issue.repo, issue.number)
        if current.has_label(LABEL_PENDING_TRANSFER):
            result.skip_reason = "transfer already pending"
            return

        if self.dry_run:
            logger.info(
                f"[dry-run] Would schedule transfer of {issue.full_repo}#"
                f"{issue.number} to {decision.target}"
            )
            return

        comment = format_pending_transfer_comment(
            action,
            decision.rule,
            self.delayed.approve_reaction,
            self.delayed.cancel_reaction,
            reason=decision.reason,
        )
        comment_id = self.gh.add_issue_comment(
            issue.org, issue.repo, issue.number, comment
        )
        self.pending.schedule_transfer(
            issue, decision.target, comment_id, self.delayed.delay_hours
        )
        result.pending_action = action.model_copy(update={"comment_id": comment_id})
        result.scheduled = True

    def schedule_duplicate_close(
        self, issue: GitHubIssue, original_issue_url: str
    ) -> IssueResult:
        """Close ``issue`` as a duplicate, delayed when delayed actions are on."""
        result = IssueResult(
            org=issue.org,
            repo=issue.repo,
            issue_number=issue.number,
            target=original_issue_url,
        )

        if not self.execute:
            logger.info(f"Read-only mode: would close #{issue.number} as duplicate")
            return result

        if self.dry_run:
            logger.info(f"[dry-run] Would close #{issue.number} as duplicate")
            return result

        if not self.delayed.enabled:
            self._close_as_duplicate(
                issue.org, issue.repo, issue.number, original_issue_url
            )
            result.closed = True
            return result

        current = self.gh.get_issue(issue.org, issue.repo, issue.number)
        if current.has_label(LABEL_PENDING_CLOSE):
            result.skip_reason = "close already pending"
            return result

        action = build_pending_action(
            issue, ActionType.CLOSE, original_issue_url, self.delayed.delay_hours
        )
        comment = format_pending_close_comment(
            action, self.delayed.approve_reaction, self.delayed.cancel_reaction
        )
        comment_id = self.gh.add_issue_comment(
            issue.org, issue.repo, issue.number, comment
        )
        self.pending.schedule_close(
            issue, original_issue_url, comment_id, self.delayed.delay_hours
        )
        result.pending_action = action.model_copy(update={"comment_id": comment_id})
        result.scheduled = True
        return result

    def check_revert(self, issue: GitHubIssue) -> RevertAction | None:
        """Detect a revert request and, when executing, carry it out."""
        revert = self.reverts.check_for_revert(issue)
        if revert is not None and self.execute:
            self.reverts.revert(issue, revert, self.executor)
        return revert

    def process_pending(
        self, org: str, repo: str, now: datetime | None = None
    ) -> list[PendingOutcome]:
        """Reconciliation pass over every pending action in ``org/repo``."""
        outcomes = []
        for action in self.pending.find_pending_actions(org, repo):
            outcome = self._reconcile(action, now)
            logger.info(
                f"{action.org}/{action.repo}#{action.issue_number} "
                f"({action.type.value}): {outcome.outcome}"
            )
            outcomes.append(outcome)
        return outcomes

    def _reconcile(
        self, action: PendingAction, now: datetime | None
    ) -> PendingOutcome:
        issue = self.gh.get_issue(action.org, action.repo, action.issue_number)

        revert = self.reverts.check_for_revert(issue)
        if revert is not None:
            if self.mutating:
                self.pending.cancel(action)
                self.reverts.revert(issue, revert, self.executor)
            return PendingOutcome(action, "reverted", f"back to {revert.target_repo}")

        verdict = self._reaction_verdict(action)

        if verdict == "cancel":
            if self.mutating:
                self.pending.cancel(action)
                self.gh.add_issue_comment(
                    action.org,
                    action.repo,
                    action.issue_number,
                    format_cancelled_comment(action),
                )
            return PendingOutcome(action, "cancelled", "cancel reaction")

        if verdict == "approve" or action.is_expired(now):
            detail = "approved" if verdict == "approve" else "expired"
            if self.execute:
                self._execute(issue, action)
            return PendingOutcome(action, "executed", detail)

        return PendingOutcome(
            action, "waiting", f"expires {action.expires_at.isoformat()}"
        )

    def _reaction_verdict(self, action: PendingAction) -> str:
        if not action.comment_id:
            return "none"
        try:
            return self.gh.check_reaction_decision(
                action.org,
                action.repo,
                action.issue_number,
                action.comment_id,
                self.delayed.approve_reaction,
                self.delayed.cancel_reaction,
            )
        except (ValueError, GithubException) as e:
            logger.warning(
                f"Could not read reactions on comment {action.comment_id}: {e}"
            )
            return "none"

    def _execute(self, issue: GitHubIssue, action: PendingAction) -> None:
        if action.type == ActionType.TRANSFER:
            new_number = self.executor.transfer(issue, action.target)
            if new_number is not None:
                # The label travels with the issue when the target has it too
                target_org, target_repo = parse_repo(action.target)
                self.pending.complete(
                    action.model_copy(
                        update={
                            "org": target_org,
                            "repo": target_repo,
                            "issue_number": new_number,
                        }
                    )
                )
            return

        if self.dry_run:
            logger.info(f"[dry-run] Would close #{action.issue_number} as duplicate")
            return
        self._close_as_duplicate(
            action.org, action.repo, action.issue_number, action.target
        )
        self.pending.complete(action)

    def _close_as_duplicate(
        self, org: str, repo: str, issue_number: int, original_issue_url: str
    ) -> None:
        self.gh.add_issue_comment(
            org, repo, issue_number, format_close_comment(original_issue_url)
        )
        self.gh.close_issue(org, repo, issue_number, reason="not_planned")
