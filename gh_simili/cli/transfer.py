"""CLI commands acting on a single issue: transfer check, revert, duplicate."""

from github.GithubException import GithubException
from rich.console import Console

from ..errors import SimiliError
from ..pipeline.processor import IssueResult
from .common import build_processor, fail, load_cli_config, resolve_single_issue
from .options import (
    CONFIG_OPTION,
    DRY_RUN_OPTION,
    EVENT_PATH_OPTION,
    EXECUTE_OPTION,
    ISSUE_NUMBER_OPTION,
    ORG_OPTION,
    ORIGINAL_URL_OPTION,
    REPO_OPTION,
)

console = Console()


def _print_result(result: IssueResult) -> None:
    ref = f"{result.org}/{result.repo}#{result.issue_number}"
    if result.skip_reason:
        console.print(f"⏭️  [yellow]{ref}: {result.skip_reason}[/yellow]")
    elif result.transferred:
        console.print(
            f"🚚 [green]{ref} transferred to {result.target} "
            f"(#{result.new_issue_number})[/green]"
        )
    elif result.closed:
        console.print(f"🔒 [green]{ref} closed as duplicate[/green]")
    elif result.scheduled and result.pending_action is not None:
        console.print(
            f"⏳ [blue]{ref} scheduled ({result.pending_action.type.value}) until "
            f"{result.pending_action.expires_at.isoformat()}[/blue]"
        )
    elif result.target:
        console.print(
            f"🎯 [blue]{ref} would move to {result.target} "
            f"(via {result.source})[/blue]"
        )
    else:
        console.print(f"✅ [green]{ref}: no action needed[/green]")


def transfer_check(
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    issue_number: int | None = ISSUE_NUMBER_OPTION,
    event_path: str | None = EVENT_PATH_OPTION,
    config_path: str | None = CONFIG_OPTION,
    execute: bool = EXECUTE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Decide whether an issue belongs in another repository.

    Rules are checked first, then the AI router. With --execute the issue is
    transferred right away, or scheduled when delayed actions are enabled.

    Examples:
        # Show where an issue would go
        gh-simili transfer-check --org myorg --repo myrepo --issue-number 42

        # Apply the decision from inside a GitHub Actions workflow
        gh-simili transfer-check --event-path "$GITHUB_EVENT_PATH" --execute
    """
    try:
        org, repo, number = resolve_single_issue(org, repo, issue_number, event_path)
        config = load_cli_config(config_path)
        processor = build_processor(config, execute=execute, dry_run=dry_run)
        issue = processor.gh.get_issue(org, repo, number)
        result = processor.process_issue(issue)
    except (SimiliError, ValueError, GithubException) as e:
        fail(str(e))

    _print_result(result)


def check_revert(
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    issue_number: int | None = ISSUE_NUMBER_OPTION,
    event_path: str | None = EVENT_PATH_OPTION,
    config_path: str | None = CONFIG_OPTION,
    execute: bool = EXECUTE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Move an optimistically transferred issue back when users object.

    Looks for the cancel reaction on the comment that announced the transfer.

    Examples:
        gh-simili check-revert --org myorg --repo backend --issue-number 7 --execute
    """
    try:
        org, repo, number = resolve_single_issue(org, repo, issue_number, event_path)
        config = load_cli_config(config_path)
        processor = build_processor(config, execute=execute, dry_run=dry_run)
        issue = processor.gh.get_issue(org, repo, number)
        revert = processor.check_revert(issue)
    except (SimiliError, ValueError, GithubException) as e:
        fail(str(e))

    if revert is None:
        console.print(f"✅ [green]{org}/{repo}#{number}: no revert requested[/green]")
        return

    verb = "Reverted" if execute and not dry_run else "Would revert"
    console.print(
        f"↩️  [yellow]{verb} {org}/{repo}#{number} to {revert.target_repo}[/yellow]"
    )


def mark_duplicate(
    original_url: str = ORIGINAL_URL_OPTION,
    org: str | None = ORG_OPTION,
    repo: str | None = REPO_OPTION,
    issue_number: int | None = ISSUE_NUMBER_OPTION,
    event_path: str | None = EVENT_PATH_OPTION,
    config_path: str | None = CONFIG_OPTION,
    execute: bool = EXECUTE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Close an issue as a duplicate of another one.

    With delayed actions enabled the close is scheduled and can be cancelled
    by reacting to the announcement comment.

    Examples:
        gh-simili mark-duplicate -o myorg -r myrepo -i 12 \\
            --original-url https://github.com/myorg/myrepo/issues/3 --execute
    """
    try:
        org, repo, number = resolve_single_issue(org, repo, issue_number, event_path)
        config = load_cli_config(config_path)
        processor = build_processor(config, execute=execute, dry_run=dry_run)
        issue = processor.gh.get_issue(org, repo, number)
        result = processor.schedule_duplicate_close(issue, original_url)
    except (SimiliError, ValueError, GithubException) as e:
        fail(str(e))

    _print_result(result)
