"""Transfer triage orchestration."""

from .processor import IssueResult, PendingOutcome, TransferProcessor

__all__ = ["IssueResult", "PendingOutcome", "TransferProcessor"]
