"""Tests for the ShellSense CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shellsense import __version__
from shellsense.cli import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config whose filesystem providers search an empty directory."""
    root = tmp_path / "root"
    root.mkdir()
    path = tmp_path / "shellsense.yaml"
    path.write_text(f"resolution:\n  search_roots: [{root}]\n")
    return path


@pytest.fixture
def npm_log(tmp_path: Path) -> Path:
    path = tmp_path / "install.log"
    path.write_text("added 12 packages\nnpm ERR! code E404\nnpm ERR! 404 Not Found\n")
    return path


class TestGlobalOptions:
    """Tests for options handled by the app callback."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"ShellSense v{__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("analyze", "patterns", "shell"):
            assert command in result.stdout

    def test_shell_help(self) -> None:
        result = runner.invoke(app, ["shell", "--help"])
        assert result.exit_code == 0
        assert "--shell" in result.stdout

    def test_inconsistent_log_options(self, config_file: Path, npm_log: Path) -> None:
        result = runner.invoke(
            app, ["--log-format", "both", "analyze", str(npm_log), "-c", str(config_file)]
        )
        assert result.exit_code == 1
        assert "Logging configuration error" in result.stdout


    def test_config_logging_section_applied(self, tmp_path: Path, npm_log: Path) -> None:
        root = tmp_path / "root"
        root.mkdir()
        log_file = tmp_path / "logs" / "shellsense.log"
        config = tmp_path / "logging.yaml"
        config.write_text(
            f"resolution:\n  search_roots: [{root}]\n"
            f"logging:\n  level: DEBUG\n  format: json\n  file_path: {log_file}\n"
        )
        result = runner.invoke(app, ["analyze", str(npm_log), "-c", str(config)])
        assert result.exit_code == 1
        assert '"registry.created"' in log_file.read_text()


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_errors_found(self, config_file: Path, npm_log: Path) -> None:
        result = runner.invoke(app, ["analyze", str(npm_log), "-c", str(config_file)])
        assert result.exit_code == 1
        assert "code E404" in result.stdout
        assert "error(s) detected" in result.stdout

    def test_json_output(self, config_file: Path, npm_log: Path) -> None:
        result = runner.invoke(app, ["analyze", str(npm_log), "-c", str(config_file), "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["errors"] == len(payload["results"])
        first = payload["results"][0]
        assert first["error"]["type"] == "npm"
        assert first["error"]["message"] == "code E404"
        confidences = [r["confidence"] for r in first["resolutions"]]
        assert confidences == sorted(confidences, reverse=True)

    def test_clean_output(self, config_file: Path, tmp_path: Path) -> None:
        log = tmp_path / "ok.log"
        log.write_text("build finished\nall tests passed\n")
        result = runner.invoke(app, ["analyze", str(log), "-c", str(config_file)])
        assert result.exit_code == 0
        assert "No errors detected." in result.stdout

    def test_reads_stdin(self, config_file: Path) -> None:
        result = runner.invoke(
            app, ["analyze", "-", "-c", str(config_file)], input="npm ERR! code E404\n"
        )
        assert result.exit_code == 1
        assert "code E404" in result.stdout

    def test_missing_input_file(self, config_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["analyze", str(tmp_path / "missing.log"), "-c", str(config_file)]
        )
        assert result.exit_code == 2
        assert "Cannot read input" in result.stdout

    def test_invalid_config(self, npm_log: Path, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("resolution:\n  max_per_error: 0\n")
        result = runner.invoke(app, ["analyze", str(npm_log), "-c", str(bad)])
        assert result.exit_code == 2

    def test_extra_pattern_file(self, config_file: Path, tmp_path: Path) -> None:
        patterns = tmp_path / "patterns.yaml"
        patterns.write_text(
            "patterns:\n"
            "  - name: deploy-failed\n"
            "    type: deploy\n"
            "    pattern: 'DEPLOY FAILED: (.*)'\n"
            "    priority: 20\n"
        )
        log = tmp_path / "deploy.log"
        log.write_text("DEPLOY FAILED: quota exceeded\n")
        result = runner.invoke(
            app, ["analyze", str(log), "-c", str(config_file), "-p", str(patterns), "--json"]
        )
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["results"][0]["error"]["type"] == "deploy"
        assert payload["results"][0]["error"]["message"] == "quota exceeded"


class TestPatternsCommand:
    """Tests for the patterns command."""

    def test_table(self) -> None:
        result = runner.invoke(app, ["patterns"])
        assert result.exit_code == 0
        assert "npm-error" in result.stdout
        assert "active pattern(s)" in result.stdout

    def test_json_in_priority_order(self) -> None:
        result = runner.invoke(app, ["patterns", "--json"])
        assert result.exit_code == 0
        records = json.loads(result.stdout)
        priorities = [r["priority"] for r in records]
        assert priorities == sorted(priorities, reverse=True)
        assert records[0]["name"] == "npm-error"
        assert "groupConsecutive" in records[0]
