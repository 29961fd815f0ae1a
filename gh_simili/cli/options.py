"""Standardized CLI option definitions for consistent shorthand mappings.

Every command builds its options from here so the same flag means the same
thing everywhere.
"""

import typer

# Core options - identify the issue or repository to work on
ORG_OPTION = typer.Option(None, "--org", "-o", help="GitHub organization name")

REPO_OPTION = typer.Option(None, "--repo", "-r", help="GitHub repository name")

ISSUE_NUMBER_OPTION = typer.Option(
    None, "--issue-number", "-i", help="Specific issue number"
)

EVENT_PATH_OPTION = typer.Option(
    None,
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    help="GitHub Actions event payload to read org, repo and issue from",
)

# Configuration options
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to the config file (default: SIMILI_CONFIG or .github/simili.yaml)",
)

# Behavior options - control command behavior
DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", "-d", help="Preview changes without applying them"
)

EXECUTE_OPTION = typer.Option(
    False, "--execute", help="Apply actions; without it commands only analyze"
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging")

ORIGINAL_URL_OPTION = typer.Option(
    ..., "--original-url", help="URL of the issue this one duplicates"
)
