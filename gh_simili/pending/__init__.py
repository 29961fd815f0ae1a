"""Delayed actions persisted in issue labels and comments."""

from .manager import (
    LABEL_PENDING_CLOSE,
    LABEL_PENDING_TRANSFER,
    ActionType,
    PendingAction,
    PendingActionManager,
    build_pending_action,
    format_pending_action_metadata,
    label_for_action_type,
    parse_pending_action_metadata,
)

__all__ = [
    "LABEL_PENDING_CLOSE",
    "LABEL_PENDING_TRANSFER",
    "ActionType",
    "PendingAction",
    "PendingActionManager",
    "build_pending_action",
    "format_pending_action_metadata",
    "label_for_action_type",
    "parse_pending_action_metadata",
]
