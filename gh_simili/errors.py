"""Error taxonomy for transfer triage.

Configuration problems are reported before any decision logic runs. Failures
of mutating tracker calls surface as ``TransferError`` (tagged with the stage
that failed) or ``PendingActionError`` and abort the run. Routing failures are
raised as ``RoutingError`` and callers degrade them to "no decision".
"""

from typing import Optional


class SimiliError(Exception):
    """Base class for all gh-simili errors."""


class ConfigError(SimiliError):
    """Raised when configuration cannot be found, parsed or validated."""

    def __init__(self, message: str, problems: Optional[list[str]] = None):
        self.problems = problems or []
        super().__init__(message)


class RoutingError(SimiliError):
    """Raised when the AI router cannot produce a decision."""


class PendingActionError(SimiliError):
    """Raised for pending-action invariant violations."""


class TransferError(SimiliError):
    """Raised when a transfer cannot be completed.

    Attributes:
        stage: Name of the step that failed (``parse_target``, ``target_lookup``,
            ``transfer_status``, ``notify`` or ``transfer``).
    """

    def __init__(self, message: str, stage: str):
        self.stage = stage
        super().__init__(f"{stage}: {message}")
