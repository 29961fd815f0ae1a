"""Test configuration and fixtures."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from gh_simili.config import (
    Config,
    DefaultsConfig,
    DelayedActionsConfig,
    RepositoryConfig,
    RouterConfig,
    RuleMatch,
    TransferRule,
    TriageConfig,
)
from gh_simili.github_client.models import (
    GitHubComment,
    GitHubIssue,
    GitHubLabel,
    GitHubUser,
    parse_repo,
)

BOT = GitHubUser(login="simili-bot", id=1)
ALICE = GitHubUser(login="alice", id=2)


def make_issue(
    number: int = 1,
    org: str = "acme",
    repo: str = "frontend",
    title: str = "Button renders twice",
    body: str | None = "Steps to reproduce...",
    labels: list[str] | None = None,
    author: GitHubUser = ALICE,
) -> GitHubIssue:
    return GitHubIssue(
        org=org,
        repo=repo,
        number=number,
        title=title,
        body=body,
        labels=[GitHubLabel(name=name) for name in labels or []],
        user=author,
        html_url=f"https://github.com/{org}/{repo}/issues/{number}",
    )


class FakeGitHub:
    """In-memory stand-in for GitHubClient.

    Keeps issues, comments, labels and reactions, and records every mutation
    so tests can assert on what was posted, labeled, moved or closed.
    """

    def __init__(self, repos: list[str] | None = None):
        self.repos = {name.lower() for name in repos or []}
        self.issues: dict[tuple[str, str, int], GitHubIssue] = {}
        self.comments: dict[tuple[str, str, int], list[GitHubComment]] = {}
        self.reactions: dict[int, list[str]] = {}
        self.moved: dict[tuple[str, str, int], tuple[str, str, int]] = {}
        self.transfers: list[tuple[str, str, int, str]] = []
        self.closed: list[tuple[str, str, int, str]] = []
        self.posted: list[tuple[str, str, int, str]] = []
        self._next_comment_id = 1000

    @staticmethod
    def _key(org: str, repo: str, number: int) -> tuple[str, str, int]:
        return org.lower(), repo.lower(), number

    def _resolve(self, org: str, repo: str, number: int) -> tuple[str, str, int]:
        key = self._key(org, repo, number)
        while key in self.moved:
            key = self.moved[key]
        if key not in self.issues:
            raise ValueError(f"Not found while trying to fetch issue #{number}")
        return key

    # Seeding helpers

    def add_issue(self, issue: GitHubIssue) -> GitHubIssue:
        self.repos.add(issue.full_repo.lower())
        key = self._key(issue.org, issue.repo, issue.number)
        self.issues[key] = issue.model_copy(deep=True)
        self.comments.setdefault(key, [])
        return issue

    def seed_comment(
        self, issue: GitHubIssue, body: str, user: GitHubUser = ALICE
    ) -> int:
        key = self._resolve(issue.org, issue.repo, issue.number)
        return self._append_comment(key, body, user)

    def react(self, comment_id: int, content: str) -> None:
        self.reactions.setdefault(comment_id, []).append(content)

    def _append_comment(
        self, key: tuple[str, str, int], body: str, user: GitHubUser
    ) -> int:
        self._next_comment_id += 1
        now = datetime.now(timezone.utc)
        self.comments[key].append(
            GitHubComment(
                id=self._next_comment_id,
                user=user,
                body=body,
                created_at=now,
                updated_at=now,
            )
        )
        return self._next_comment_id

    def labels_of(self, org: str, repo: str, number: int) -> list[str]:
        return self.issues[self._resolve(org, repo, number)].label_names

    def bodies(self, org: str, repo: str, number: int) -> list[str]:
        return [c.body for c in self.comments[self._resolve(org, repo, number)]]

    # GitHubClient surface

    def repo_exists(self, org: str, repo: str) -> bool:
        return f"{org}/{repo}".lower() in self.repos

    def get_issue(self, org: str, repo: str, issue_number: int) -> GitHubIssue:
        return self.issues[self._resolve(org, repo, issue_number)].model_copy(
            deep=True
        )

    def list_issues_by_label(
        self, org: str, repo: str, label: str, state: str = "open"
    ) -> list[GitHubIssue]:
        return [
            issue.model_copy(deep=True)
            for key, issue in self.issues.items()
            if key[:2] == (org.lower(), repo.lower())
            and issue.has_label(label)
            and (state == "all" or issue.state == state)
        ]

    def list_comments(
        self, org: str, repo: str, issue_number: int
    ) -> list[GitHubComment]:
        return list(self.comments[self._resolve(org, repo, issue_number)])

    def add_issue_comment(
        self, org: str, repo: str, issue_number: int, comment: str
    ) -> int:
        key = self._resolve(org, repo, issue_number)
        self.posted.append((org, repo, issue_number, comment))
        return self._append_comment(key, comment, BOT)

    def add_labels(
        self, org: str, repo: str, issue_number: int, labels: list[str]
    ) -> None:
        issue = self.issues[self._resolve(org, repo, issue_number)]
        for name in labels:
            if not issue.has_label(name):
                issue.labels.append(GitHubLabel(name=name))

    def remove_label(self, org: str, repo: str, issue_number: int, label: str) -> None:
        issue = self.issues[self._resolve(org, repo, issue_number)]
        issue.labels = [lb for lb in issue.labels if lb.name.lower() != label.lower()]

    def close_issue(
        self, org: str, repo: str, issue_number: int, reason: str = "not_planned"
    ) -> None:
        self.issues[self._resolve(org, repo, issue_number)].state = "closed"
        self.closed.append((org, repo, issue_number, reason))

    def transfer_issue(
        self, org: str, repo: str, issue_number: int, target_repo: str
    ) -> int:
        old_key = self._resolve(org, repo, issue_number)
        target_org, target_name = parse_repo(target_repo)
        target_key = (target_org.lower(), target_name.lower())
        new_number = 1 + max(
            (k[2] for k in [*self.issues, *self.moved] if k[:2] == target_key),
            default=0,
        )
        issue = self.issues.pop(old_key)
        issue.org, issue.repo, issue.number = target_org, target_name, new_number
        new_key = self._key(target_org, target_name, new_number)
        self.issues[new_key] = issue
        self.comments[new_key] = self.comments.pop(old_key)
        self.moved[old_key] = new_key
        self.transfers.append((org, repo, issue_number, target_repo))
        return new_number

    def was_already_transferred(self, org: str, repo: str, issue_number: int) -> bool:
        return self._resolve(org, repo, issue_number) != self._key(
            org, repo, issue_number
        )

    def check_reaction_decision(
        self,
        org: str,
        repo: str,
        issue_number: int,
        comment_id: int,
        approve_reaction: str,
        cancel_reaction: str,
    ) -> str:
        contents = set(self.reactions.get(comment_id, []))
        if cancel_reaction in contents:
            return "cancel"
        if approve_reaction in contents:
            return "approve"
        return "none"

    def has_reaction(
        self,
        org: str,
        repo: str,
        issue_number: int,
        comment_id: int,
        reaction_type: str,
    ) -> bool:
        return reaction_type in self.reactions.get(comment_id, [])


class StubLLM:
    """Language model returning a canned response and recording prompts."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def complete_with_system(self, system: str, prompt: str) -> str:
        self.calls.append((system, prompt))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_gh() -> FakeGitHub:
    return FakeGitHub(repos=["acme/frontend", "acme/backend", "acme/docs"])


@pytest.fixture
def issue(fake_gh: FakeGitHub) -> GitHubIssue:
    return fake_gh.add_issue(
        make_issue(title="API returns 500 on login", labels=["backend"])
    )


def build_config(
    delayed: bool = False,
    optimistic: bool = False,
    delay_hours: int = 24,
    rules: list[TransferRule] | None = None,
    router: bool = False,
) -> Config:
    """Three-repository setup; ``frontend`` sends backend-labeled issues away."""
    if rules is None:
        rules = [
            TransferRule(target="acme/backend", match=RuleMatch(labels=["backend"]))
        ]
    return Config(
        defaults=DefaultsConfig(
            delayed_actions=DelayedActionsConfig(
                enabled=delayed,
                delay_hours=delay_hours,
                optimistic_transfers=optimistic,
            )
        ),
        triage=TriageConfig(router=RouterConfig(enabled=router)),
        repositories=[
            RepositoryConfig(
                org="acme",
                repo="frontend",
                description="Web UI components and styling",
                transfer_rules=rules,
            ),
            RepositoryConfig(
                org="acme", repo="backend", description="REST API and database"
            ),
            RepositoryConfig(org="acme", repo="docs", description=""),
        ],
    )


@pytest.fixture
def config() -> Config:
    return build_config()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "simili.yaml"
    path.write_text(
        """
defaults:
  delayed_actions:
    enabled: true
    delay_hours: 48
    optimistic_transfers: false
triage:
  router:
    enabled: false
repositories:
  - org: acme
    repo: frontend
    description: Web UI
    transfer_rules:
      - target: acme/backend
        match:
          labels: [backend]
  - org: acme
    repo: backend
    description: REST API
"""
    )
    return path


@pytest.fixture
def issue_factory():
    """Build issues with sensible defaults; see ``make_issue``."""
    return make_issue


@pytest.fixture
def config_factory():
    """Build configurations with sensible defaults; see ``build_config``."""
    return build_config


@pytest.fixture
def stub_llm():
    """Factory for a canned language model."""
    return StubLLM
