"""Comment text posted by transfer triage, and the metadata hidden inside it."""

import re

from pydantic import BaseModel, ValidationError

from ..config import TransferRule
from ..pending.manager import PendingAction, format_pending_action_metadata

# Posted when moving an issue back; also the sentinel the loop guard looks for
REVERT_MARKER = "↩️ Reverting transfer"

TRANSFER_SOURCE_PATTERN = re.compile(
    r"<!-- simili-transfer-source: (\{.*?\}) -->", re.DOTALL
)

FOOTER = "<sub>🤖 Powered by Simili</sub>"

REACTION_EMOJI = {
    "+1": "👍",
    "-1": "👎",
    "laugh": "😄",
    "confused": "😕",
    "heart": "❤️",
    "hooray": "🎉",
    "rocket": "🚀",
    "eyes": "👀",
}


class TransferSourceMetadata(BaseModel):
    """Where a transferred issue came from."""

    org: str
    repo: str


def format_transfer_source_metadata(org: str, repo: str) -> str:
    data = TransferSourceMetadata(org=org, repo=repo).model_dump_json()
    return f"<!-- simili-transfer-source: {data} -->"


def parse_transfer_source_metadata(body: str) -> TransferSourceMetadata | None:
    """Return the embedded source metadata, or None if absent or invalid."""
    match = TRANSFER_SOURCE_PATTERN.search(body)
    if not match:
        return None
    try:
        return TransferSourceMetadata.model_validate_json(match.group(1))
    except ValidationError:
        return None


def reaction_label(reaction: str) -> str:
    return REACTION_EMOJI.get(reaction, f":{reaction}:")


def format_match_description(rule: TransferRule | None) -> str:
    """Human-readable summary of what a rule matched on."""
    if rule is None:
        return "routing rules"

    parts = []
    match = rule.match
    if match.labels:
        parts.append(f"`labels: [{', '.join(match.labels)}]`")
    if match.title_contains:
        parts.append(f"`title_contains: [{', '.join(match.title_contains)}]`")
    if match.body_contains:
        parts.append(f"`body_contains: [{', '.join(match.body_contains)}]`")
    if match.author:
        parts.append(f"`author: {match.author}`")

    if not parts:
        return "routing rules"
    return " + ".join(parts)


def format_transfer_comment(
    target_repo: str,
    rule: TransferRule | None,
    source_org: str,
    source_repo: str,
    reason: str | None = None,
    revert_reaction: str | None = None,
) -> str:
    """Notification posted right before an issue is transferred.

    The comment travels with the issue, so the embedded source metadata
    lets a later revert find the way back.
    """
    lines = [
        f"🚚 This issue has been automatically transferred to **{target_repo}** "
        f"because it matches our routing rules.",
        "",
        f"**Matched rule:** {format_match_description(rule)}",
    ]
    if reason:
        lines.extend(["", f"**Reason:** {reason}"])
    lines.extend(["", "The discussion will continue there. Thanks for your report!"])
    if revert_reaction:
        lines.extend(
            [
                "",
                f"If this was a mistake, react with {reaction_label(revert_reaction)} "
                f"on this comment and the issue will be moved back to "
                f"**{source_org}/{source_repo}**.",
            ]
        )
    lines.extend(
        [
            "",
            "---",
            FOOTER,
            format_transfer_source_metadata(source_org, source_repo),
        ]
    )
    return "\n".join(lines)


def format_pending_transfer_comment(
    action: PendingAction,
    rule: TransferRule | None,
    approve_reaction: str,
    cancel_reaction: str,
    reason: str | None = None,
) -> str:
    """Announcement of a delayed transfer, carrying the action payload."""
    lines = [
        f"📦 This issue will be transferred to **{action.target}** "
        f"after {action.expires_at:%Y-%m-%d %H:%M} UTC.",
        "",
        f"**Matched rule:** {format_match_description(rule)}",
    ]
    if reason:
        lines.extend(["", f"**Reason:** {reason}"])
    lines.extend(
        [
            "",
            f"- React with {reaction_label(approve_reaction)} to transfer now",
            f"- React with {reaction_label(cancel_reaction)} to keep it here",
            "",
            "---",
            FOOTER,
            format_pending_action_metadata(action),
        ]
    )
    return "\n".join(lines)


def format_pending_close_comment(
    action: PendingAction, approve_reaction: str, cancel_reaction: str
) -> str:
    """Announcement of a delayed duplicate close, carrying the action payload."""
    return "\n".join(
        [
            f"🔁 This issue looks like a duplicate of {action.target} and will be "
            f"closed after {action.expires_at:%Y-%m-%d %H:%M} UTC.",
            "",
            f"- React with {reaction_label(approve_reaction)} to close it now",
            f"- React with {reaction_label(cancel_reaction)} to keep it open",
            "",
            "---",
            FOOTER,
            format_pending_action_metadata(action),
        ]
    )


def format_close_comment(original_issue_url: str) -> str:
    return "\n".join(
        [
            f"🔒 Closing as a duplicate of {original_issue_url}. "
            f"Please follow the discussion there.",
            "",
            "---",
            FOOTER,
        ]
    )


def format_cancelled_comment(action: PendingAction) -> str:
    what = "transfer" if action.type == "transfer" else "close"
    return f"🛑 The scheduled {what} was cancelled by user request."


def format_revert_comment(target_repo: str) -> str:
    return (
        f"{REVERT_MARKER}. Moving issue back to **{target_repo}** "
        f"based on user request."
    )
