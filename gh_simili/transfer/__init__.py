"""Transfer decisions, execution and reverts."""

from .comments import REVERT_MARKER, TransferSourceMetadata
from .decision import TransferCheck, TransferDecision
from .executor import TransferExecutor
from .revert import RevertAction, RevertManager
from .rules import RuleMatcher

__all__ = [
    "REVERT_MARKER",
    "RevertAction",
    "RevertManager",
    "RuleMatcher",
    "TransferCheck",
    "TransferDecision",
    "TransferExecutor",
    "TransferSourceMetadata",
]
