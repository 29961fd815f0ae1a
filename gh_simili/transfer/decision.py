"""Transfer check: decide whether an issue belongs in another repository."""

import logging
from dataclasses import dataclass
from datetime import datetime

from github.GithubException import GithubException

from ..ai.agents import LLMProvider
from ..ai.models import RoutingResult
from ..ai.router import Router
from ..config import Config, TransferRule
from ..errors import RoutingError
from ..github_client.client import GitHubClient
from ..github_client.models import GitHubIssue
from ..pending.manager import ActionType, PendingAction, build_pending_action
from .comments import REVERT_MARKER
from .rules import RuleMatcher

logger = logging.getLogger(__name__)

ROUTING_CONFIDENCE_THRESHOLD = 0.8

# Older reverts must not block unrelated transfers forever
REVERT_LOOKBACK_COMMENTS = 5


@dataclass
class TransferDecision:
    """Outcome of a transfer check. An empty ``target`` means stay put."""

    target: str = ""
    rule: TransferRule | None = None
    routing: RoutingResult | None = None
    pending_action: PendingAction | None = None
    skip_reason: str | None = None

    @property
    def reason(self) -> str | None:
        return self.routing.reason if self.routing else None


class TransferCheck:
    """Resolves a transfer target by rules first, then AI routing.

    Does not execute or schedule anything; callers act on the decision.
    """

    name = "transfer_check"

    def __init__(
        self,
        config: Config,
        gh: GitHubClient | None = None,
        llm: LLMProvider | None = None,
    ):
        self.config = config
        self.gh = gh
        self.llm = llm

    def evaluate(
        self, issue: GitHubIssue, now: datetime | None = None
    ) -> TransferDecision:
        repo_config = self.config.get_repo_config(issue.org, issue.repo)
        if repo_config is None:
            return TransferDecision(skip_reason="repository not configured")

        if self.is_reverted(issue):
            logger.info(
                f"Issue #{issue.number} was recently reverted, skipping automatic "
                f"transfer to prevent loops"
            )
            return TransferDecision(skip_reason="recently reverted")

        decision = TransferDecision()

        if repo_config.transfer_rules:
            target, rule = RuleMatcher(repo_config.transfer_rules).match(issue)
            decision.target, decision.rule = target, rule

        if not decision.target and self.config.triage.router.enabled:
            routing = self._route(issue)
            if routing is not None:
                decision.target = routing.target_repo
                decision.routing = routing

        if not decision.target:
            return decision

        logger.info(
            f"Transfer target identified: {issue.full_repo} -> {decision.target}"
        )

        delayed = self.config.defaults.delayed_actions
        if delayed.enabled:
            decision.pending_action = build_pending_action(
                issue,
                ActionType.TRANSFER,
                decision.target,
                delayed.delay_hours,
                now=now,
            )

        return decision

    def _route(self, issue: GitHubIssue) -> RoutingResult | None:
        """Ask the AI router; failures and weak or self-targeted answers yield None."""
        if self.llm is None:
            logger.warning("AI routing enabled but no language model configured")
            return None

        router = Router(self.llm, self.config.repositories)
        try:
            result = router.route(issue)
        except RoutingError as e:
            logger.warning(f"AI routing failed: {e}")
            return None

        if result is None or result.confidence < ROUTING_CONFIDENCE_THRESHOLD:
            return None

        if result.target_repo.lower() == issue.full_repo.lower():
            return None

        logger.info(
            f"AI Router suggested transfer: {issue.full_repo} -> "
            f"{result.target_repo} (Reason: {result.reason})"
        )
        return result

    def is_reverted(self, issue: GitHubIssue) -> bool:
        """Check the body and the newest comments for the revert marker."""
        if REVERT_MARKER in (issue.body or ""):
            return True

        if self.gh is None:
            return False

        try:
            comments = self.gh.list_comments(issue.org, issue.repo, issue.number)
        except (ValueError, GithubException) as e:
            logger.warning(f"Could not read comments for revert check: {e}")
            return False

        recent = comments[-REVERT_LOOKBACK_COMMENTS:]
        return any(REVERT_MARKER in comment.body for comment in recent)
