"""Test main CLI functionality."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from gh_simili.cli.common import (
    build_clients,
    load_cli_config,
    read_event,
    resolve_issue_ref,
)
from gh_simili.cli.main import app
from gh_simili.config import RuleMatch, TransferRule
from gh_simili.errors import ConfigError
from gh_simili.pipeline.processor import TransferProcessor

runner = CliRunner()


@pytest.fixture
def event_file(tmp_path: Path) -> Path:
    path = tmp_path / "event.json"
    path.write_text(
        json.dumps(
            {
                "action": "opened",
                "issue": {"number": 1, "title": "API returns 500 on login"},
                "repository": {"name": "frontend", "owner": {"login": "acme"}},
            }
        )
    )
    return path


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Simili v" in result.stdout


def test_help_shorthand() -> None:
    result = runner.invoke(app, ["-h"])
    assert result.exit_code == 0
    for command in ("transfer-check", "process-pending", "check-revert"):
        assert command in result.stdout


class TestValidateConfig:
    """Test the validate-config command."""

    def test_valid(self, config_file: Path) -> None:
        result = runner.invoke(app, ["validate-config", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Config is valid (2 repositories)" in result.stdout

    def test_problems(self, tmp_path: Path) -> None:
        path = tmp_path / "simili.yaml"
        path.write_text(
            "repositories:\n"
            "  - org: acme\n"
            "    repo: frontend\n"
            "    transfer_rules:\n"
            "      - target: nowhere\n"
            "        match: {labels: [x]}\n"
        )

        result = runner.invoke(app, ["validate-config", "-c", str(path)])

        assert result.exit_code == 1
        assert "Found 1 problem(s)" in result.stdout
        assert "not org/repo" in result.stdout

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["validate-config", "-c", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 1
        assert "does not exist" in " ".join(result.stdout.split())


@pytest.fixture
def invalid_config_file(tmp_path: Path) -> Path:
    path = tmp_path / "invalid.yaml"
    path.write_text(
        "defaults:\n"
        "  delayed_actions:\n"
        "    enabled: true\n"
        "    delay_hours: 0\n"
        "repositories:\n"
        "  - org: acme\n"
        "    repo: frontend\n"
        "    transfer_rules:\n"
        "      - target: acme/frontend\n"
        "        match: {labels: [backend]}\n"
    )
    return path


class TestInvalidConfigRejected:
    """Test commands stop before doing any work on an invalid config."""

    @pytest.mark.parametrize(
        "module, command, extra",
        [
            ("transfer", "transfer-check", ["-i", "1", "--execute"]),
            ("transfer", "check-revert", ["-i", "1", "--execute"]),
            (
                "transfer",
                "mark-duplicate",
                [
                    "-i",
                    "1",
                    "--original-url",
                    "https://github.com/acme/frontend/issues/2",
                ],
            ),
            ("pending", "process-pending", ["--execute"]),
        ],
    )
    def test_exits_before_building_processor(
        self, invalid_config_file: Path, module: str, command: str, extra: list[str]
    ) -> None:
        with patch(f"gh_simili.cli.{module}.build_processor") as build:
            result = runner.invoke(
                app,
                [
                    command,
                    "-c",
                    str(invalid_config_file),
                    "-o",
                    "acme",
                    "-r",
                    "frontend",
                    *extra,
                ],
            )

        assert result.exit_code == 1
        assert not build.called
        assert "2 problem(s)" in " ".join(result.stdout.split())

    def test_load_cli_config_carries_problems(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_cli_config(str(invalid_config_file))

        assert len(exc_info.value.problems) == 2
        assert any("delay_hours" in p for p in exc_info.value.problems)
        assert any("repository itself" in p for p in exc_info.value.problems)


class TestTransferCheck:
    """Test the transfer-check command with a fake tracker."""

    def _invoke(self, fake_gh, config, args: list[str]):
        def build(loaded_config, execute, dry_run):
            return TransferProcessor(
                config, fake_gh, fake_gh, execute=execute, dry_run=dry_run
            )

        with (
            patch("gh_simili.cli.transfer.load_cli_config", return_value=config),
            patch("gh_simili.cli.transfer.build_processor", side_effect=build),
        ):
            return runner.invoke(app, ["transfer-check", *args])

    def test_read_only(self, fake_gh, config, issue) -> None:
        result = self._invoke(
            fake_gh, config, ["-o", "acme", "-r", "frontend", "-i", "1"]
        )

        assert result.exit_code == 0
        assert "would move to acme/backend" in result.stdout
        assert fake_gh.transfers == []

    def test_execute(self, fake_gh, config, issue) -> None:
        result = self._invoke(
            fake_gh, config, ["-o", "acme", "-r", "frontend", "-i", "1", "--execute"]
        )

        assert result.exit_code == 0
        assert "transferred to acme/backend" in result.stdout
        assert len(fake_gh.transfers) == 1

    def test_event_path(self, fake_gh, config, issue, event_file: Path) -> None:
        result = self._invoke(fake_gh, config, ["--event-path", str(event_file)])

        assert result.exit_code == 0
        assert "acme/frontend#1" in result.stdout

    def test_transfer_failure_exits_nonzero(
        self, fake_gh, config_factory, issue
    ) -> None:
        config = config_factory(
            rules=[
                TransferRule(target="acme/gone", match=RuleMatch(labels=["backend"]))
            ]
        )

        result = self._invoke(
            fake_gh, config, ["-o", "acme", "-r", "frontend", "-i", "1", "--execute"]
        )

        assert result.exit_code == 1
        assert "target_lookup" in result.stdout

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_issue_number(self) -> None:
        result = runner.invoke(app, ["transfer-check", "-o", "acme", "-r", "frontend"])

        assert result.exit_code == 1
        assert "--issue-number is required" in result.stdout


class TestProcessPending:
    """Test the process-pending command."""

    def test_no_pending(self, fake_gh, config) -> None:
        with (
            patch("gh_simili.cli.pending.load_cli_config", return_value=config),
            patch(
                "gh_simili.cli.pending.build_processor",
                return_value=TransferProcessor(config, fake_gh, fake_gh),
            ),
        ):
            result = runner.invoke(
                app, ["process-pending", "-o", "acme", "-r", "frontend"]
            )

        assert result.exit_code == 0
        assert "No pending actions in acme/frontend" in result.stdout

    def test_table(self, fake_gh, config_factory, issue) -> None:
        config = config_factory(delayed=True)
        TransferProcessor(config, fake_gh, fake_gh, execute=True).process_issue(issue)

        with (
            patch("gh_simili.cli.pending.load_cli_config", return_value=config),
            patch(
                "gh_simili.cli.pending.build_processor",
                return_value=TransferProcessor(config, fake_gh, fake_gh),
            ),
        ):
            result = runner.invoke(
                app, ["process-pending", "-o", "acme", "-r", "frontend"]
            )

        assert result.exit_code == 0
        assert "waiting" in result.stdout
        assert "Read-only run" in result.stdout


class TestCommonHelpers:
    """Test shared CLI setup."""

    def test_read_event(self, event_file: Path) -> None:
        assert read_event(str(event_file)) == ("acme", "frontend", 1)

    def test_read_event_without_repository(self, tmp_path: Path) -> None:
        path = tmp_path / "event.json"
        path.write_text("{}")

        with pytest.raises(ConfigError, match="has no repository"):
            read_event(str(path))

    def test_options_override_event(self, event_file: Path) -> None:
        ref = resolve_issue_ref(None, None, 7, str(event_file))

        assert ref == ("acme", "frontend", 7)

    @patch.dict(os.environ, {"GITHUB_TOKEN": "bot", "TRANSFER_TOKEN": "admin"})
    def test_build_clients_uses_two_identities(self) -> None:
        with patch("gh_simili.github_client.client.Github") as mock_github:
            comment_client, transfer_client = build_clients()

        assert comment_client is not transfer_client
        assert [c.args[0] for c in mock_github.call_args_list] == ["bot", "admin"]

    @patch.dict(os.environ, {"GITHUB_TOKEN": "bot"}, clear=True)
    def test_build_clients_falls_back_to_bot_token(self) -> None:
        with patch("gh_simili.github_client.client.Github"):
            comment_client, transfer_client = build_clients()

        assert comment_client is transfer_client
