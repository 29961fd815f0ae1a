"""Deterministic transfer rule matching."""

from ..config import RuleMatch, TransferRule
from ..github_client.models import GitHubIssue


class RuleMatcher:
    """Evaluates transfer rules in configured order; the first full match wins."""

    def __init__(self, rules: list[TransferRule]):
        self.rules = rules

    def match(self, issue: GitHubIssue) -> tuple[str, TransferRule | None]:
        """Return ``(target, rule)`` of the first matching rule, or ``("", None)``."""
        for rule in self.rules:
            if matches(rule.match, issue):
                return rule.target, rule
        return "", None


def matches(match: RuleMatch, issue: GitHubIssue) -> bool:
    """Check every populated field of ``match`` against ``issue``.

    Labels must all be present. Substring lists match when any entry occurs
    (case-insensitive). The author must match exactly.
    """
    if match.labels:
        issue_labels = {label.lower() for label in issue.label_names}
        if not all(label.lower() in issue_labels for label in match.labels):
            return False

    if match.title_contains and not _contains_any(issue.title, match.title_contains):
        return False

    if match.body_contains and not _contains_any(
        issue.body or "", match.body_contains
    ):
        return False

    if match.author and issue.author != match.author:
        return False

    return True


def _contains_any(text: str, needles: list[str]) -> bool:
    haystack = text.lower()
    return any(needle.lower() in haystack for needle in needles)
