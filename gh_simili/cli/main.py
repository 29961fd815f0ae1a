"""Main CLI entry point."""

import logging

import typer
from dotenv import load_dotenv
from rich.console import Console

from ..errors import ConfigError
from .common import fail, load_cli_config
from .options import CONFIG_OPTION, VERBOSE_OPTION
from .pending import process_pending
from .transfer import check_revert, mark_duplicate, transfer_check

load_dotenv()

app = typer.Typer(
    name="gh-simili",
    help="GitHub issue transfer triage",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@app.callback()
def main(verbose: bool = VERBOSE_OPTION) -> None:
    """Route issues to the right repository and manage delayed actions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )


# All commands including main command support -h shorthand via context_settings


app.command(
    name="transfer-check", context_settings={"help_option_names": ["-h", "--help"]}
)(transfer_check)
app.command(
    name="process-pending", context_settings={"help_option_names": ["-h", "--help"]}
)(process_pending)
app.command(
    name="check-revert", context_settings={"help_option_names": ["-h", "--help"]}
)(check_revert)
app.command(
    name="mark-duplicate", context_settings={"help_option_names": ["-h", "--help"]}
)(mark_duplicate)


@app.command(
    name="validate-config", context_settings={"help_option_names": ["-h", "--help"]}
)
def validate_config_command(config_path: str | None = CONFIG_OPTION) -> None:
    """Check the config file for problems."""
    try:
        config = load_cli_config(config_path)
    except ConfigError as e:
        if not e.problems:
            fail(str(e))
        console.print(f"❌ [red]Found {len(e.problems)} problem(s):[/red]")
        for problem in e.problems:
            console.print(f"  • {problem}")
        raise typer.Exit(1)

    console.print(
        f"✅ [green]Config is valid ({len(config.repositories)} "
        f"repositories)[/green]"
    )


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def version() -> None:
    """Show version information."""
    from gh_simili import __version__

    console.print(f"Simili v{__version__}")


if __name__ == "__main__":
    app()
