"""Tests for the root CLI group."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from orbctl import __version__
from orbctl.cli import cli


class TestRootGroup:
    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("versions", "show", "diff", "migrate", "validate", "check-orb", "rules"):
            assert name in result.output

    def test_no_subcommand_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_explicit_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["-c", str(tmp_path / "nope.toml"), "versions"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_toml(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "orbctl.toml"
        config.write_text("[orb\nname = ")
        result = cli_runner.invoke(cli, ["-c", str(config), "versions"])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


class TestExplicitConfig:
    def test_config_flag_sets_project_root(
        self,
        cli_runner: CliRunner,
        project_root: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        result = cli_runner.invoke(
            cli, ["-q", "-c", str(project_root / "orbctl.toml"), "versions"]
        )
        assert result.exit_code == 0
        assert result.output.split() == ["1.0.0", "1.4.0", "2.0.0", "3.0.0"]
