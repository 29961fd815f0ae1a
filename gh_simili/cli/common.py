"""Shared setup for CLI commands: config, issue reference and clients."""

import json
import logging
import os
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from ..ai.agents import PydanticAIProvider
from ..config import Config, find_config_path, load_config, validate_config
from ..errors import ConfigError
from ..github_client.client import GitHubClient
from ..pipeline.processor import TransferProcessor
from ..vectordb.client import VectorIndexClient

logger = logging.getLogger(__name__)

console = Console()


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"❌ [red]Error: {message}[/red]")
    raise typer.Exit(1)


def load_cli_config(config_path: str | None) -> Config:
    """Load the config file chosen by ``--config`` or the default lookup.

    Raises:
        ConfigError: If no config file is found, it cannot be loaded or
            ``validate_config`` reports problems
    """
    path = find_config_path(config_path)
    if path is None:
        raise ConfigError(
            "No config file found. Pass --config, set SIMILI_CONFIG or create "
            ".github/simili.yaml"
        )
    config = load_config(path)

    problems = validate_config(config)
    if problems:
        raise ConfigError(
            f"Config {path} has {len(problems)} problem(s): " + "; ".join(problems),
            problems=problems,
        )
    return config


def read_event(event_path: str) -> tuple[str, str, int | None]:
    """Extract ``(org, repo, issue_number)`` from a GitHub Actions event file.

    Raises:
        ConfigError: If the file cannot be read or lacks repository fields
    """
    try:
        event = json.loads(Path(event_path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read event payload {event_path}: {e}") from e

    try:
        org = event["repository"]["owner"]["login"]
        repo = event["repository"]["name"]
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Event payload {event_path} has no repository") from e

    issue = event.get("issue") or {}
    return org, repo, issue.get("number")


def resolve_issue_ref(
    org: str | None,
    repo: str | None,
    issue_number: int | None,
    event_path: str | None,
    require_issue: bool = True,
) -> tuple[str, str, int | None]:
    """Combine explicit options with the event payload; options win."""
    if event_path and not (org and repo and (issue_number or not require_issue)):
        event_org, event_repo, event_number = read_event(event_path)
        org = org or event_org
        repo = repo or event_repo
        issue_number = issue_number or event_number

    if not org or not repo:
        fail("--org and --repo are required (or pass --event-path)")
    if require_issue and not issue_number:
        fail("--issue-number is required (or pass --event-path)")

    return org, repo, issue_number


def resolve_single_issue(
    org: str | None,
    repo: str | None,
    issue_number: int | None,
    event_path: str | None,
) -> tuple[str, str, int]:
    """Like ``resolve_issue_ref`` but an issue number is mandatory."""
    org, repo, number = resolve_issue_ref(org, repo, issue_number, event_path)
    if number is None:
        fail("--issue-number is required (or pass --event-path)")
    return org, repo, number


def build_clients() -> tuple[GitHubClient, GitHubClient]:
    """Create the bot client and the elevated transfer client.

    Falls back to the bot token when ``TRANSFER_TOKEN`` is not set.
    """
    comment_client = GitHubClient(token_env="GITHUB_TOKEN")
    if os.getenv("TRANSFER_TOKEN"):
        transfer_client = GitHubClient(token_env="TRANSFER_TOKEN")
    else:
        logger.warning("TRANSFER_TOKEN not set, using GITHUB_TOKEN for transfers")
        transfer_client = comment_client
    return comment_client, transfer_client


def build_processor(
    config: Config, execute: bool, dry_run: bool
) -> TransferProcessor:
    """Wire a processor from config and environment."""
    comment_client, transfer_client = build_clients()

    llm = None
    if config.triage.router.enabled:
        llm = PydanticAIProvider(config.triage.router.model)

    vector_index = VectorIndexClient(
        config.vectordb.url,
        api_key=config.vectordb.api_key,
        timeout=config.vectordb.timeout,
    )

    return TransferProcessor(
        config,
        comment_client,
        transfer_client,
        llm=llm,
        vector_index=vector_index,
        execute=execute,
        dry_run=dry_run,
    )
