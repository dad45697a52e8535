"""Tests for termservice.cli (info, shell)."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from termservice.cli import app

runner = CliRunner()


class TestInfo:
    def test_json(self) -> None:
        result = runner.invoke(app, ["info", "--json"])
        assert result.exit_code == 0
        info = json.loads(result.output)
        assert set(info) == {"platform", "arch", "default_shell", "is_wsl"}
        assert info["default_shell"]

    def test_table(self) -> None:
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "default_shell" in result.output


class TestShell:
    def test_prints_argv(self) -> None:
        result = runner.invoke(app, ["shell"])
        assert result.exit_code == 0
        assert result.output.strip()


class TestHelp:
    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "run" in result.output
