"""CLI command reconciling pending actions on a schedule."""

from github.GithubException import GithubException
from rich.console import Console
from rich.table import Table

from ..errors import SimiliError
from .common import build_processor, fail, load_cli_config, resolve_issue_ref
from .options import (
    CONFIG_OPTION,
    DRY_RUN_OPTION,
    EVENT_PATH_OPTION,
    EXECUTE_OPTION,
    ORG_OPTION,
    REPO_OPTION,
)

console = Console()

OUTCOME_STYLES = {
    "executed": "green",
    "cancelled": "yellow",
    "reverted": "yellow",
    "waiting": "blue",
}


def process_pending(
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    event_path: str | None = EVENT_PATH_OPTION,
    config_path: str | None = CONFIG_OPTION,
    execute: bool = EXECUTE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Execute, cancel or keep waiting on every pending action in a repository.

    Pending actions are found by their labels; approve and cancel reactions on
    the announcement comment decide early, otherwise the action runs once its
    delay has expired.

    Examples:
        # Show what would happen
        gh-simili process-pending --org myorg --repo myrepo

        # Run from a scheduled workflow
        gh-simili process-pending --org myorg --repo myrepo --execute
    """
    try:
        org, repo, _ = resolve_issue_ref(
            org, repo, None, event_path, require_issue=False
        )
        config = load_cli_config(config_path)
        processor = build_processor(config, execute=execute, dry_run=dry_run)
        outcomes = processor.process_pending(org, repo)
    except (SimiliError, ValueError, GithubException) as e:
        fail(str(e))

    if not outcomes:
        console.print(f"✅ [green]No pending actions in {org}/{repo}[/green]")
        return

    table = Table(title=f"Pending actions in {org}/{repo}")
    table.add_column("Issue", style="cyan")
    table.add_column("Action")
    table.add_column("Target")
    table.add_column("Outcome")
    table.add_column("Detail")

    for outcome in outcomes:
        action = outcome.action
        style = OUTCOME_STYLES.get(outcome.outcome, "white")
        table.add_row(
            f"#{action.issue_number}",
            action.type.value,
            action.target,
            f"[{style}]{outcome.outcome}[/{style}]",
            outcome.detail,
        )

    console.print(table)
    if not execute:
        console.print("ℹ️  [blue]Read-only run; pass --execute to apply[/blue]")
