"""Tests for configuration models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from shellsense.core.config import (
    DEFAULT_INTERACTIVE_PROGRAMS,
    LogConfig,
    ResolutionConfig,
    SessionConfig,
    ShellSenseConfig,
)
from shellsense.core.errors import ConfigFault


class TestDefaults:
    """Tests for default values."""

    def test_session_defaults(self) -> None:
        config = SessionConfig()
        assert config.shell == "/bin/sh"
        assert config.debounce_seconds == 0.5
        assert config.fallback_prompt_seconds == 0.3
        assert config.prompt_settle_seconds == 0.1
        assert config.notification_dedup_seconds == 300.0
        assert config.interactive_programs == DEFAULT_INTERACTIVE_PROGRAMS
        assert config.interactive_flags["python3"] == ["-i", "-u"]

    def test_resolution_defaults(self) -> None:
        config = ResolutionConfig()
        assert config.max_per_error == 10
        assert config.disabled_providers == []
        assert config.claude_enabled is False

    def test_aggregate_defaults(self) -> None:
        config = ShellSenseConfig()
        assert config.logging.level == "WARNING"
        assert config.patterns.builtin_enabled is True


class TestSessionValidation:
    """Tests for SessionConfig validators."""

    def test_fallback_must_not_precede_settle(self) -> None:
        with pytest.raises(ValidationError, match="fallback_prompt_seconds"):
            SessionConfig(fallback_prompt_seconds=0.05, prompt_settle_seconds=0.1)

    def test_equal_timers_allowed(self) -> None:
        config = SessionConfig(fallback_prompt_seconds=0.1, prompt_settle_seconds=0.1)
        assert config.fallback_prompt_seconds == 0.1

    def test_blank_programs_dropped(self) -> None:
        config = SessionConfig(interactive_programs=[" node ", "", "  "])
        assert config.interactive_programs == ["node"]

    def test_debounce_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SessionConfig(debounce_seconds=0)


class TestLogConfig:
    """Tests for LogConfig."""

    def test_both_requires_file(self) -> None:
        with pytest.raises(ValidationError, match="file_path is required"):
            LogConfig(format="both")

    def test_both_with_file(self, tmp_path: Path) -> None:
        config = LogConfig(format="both", file_path=tmp_path / "s.log")
        assert config.file_path == tmp_path / "s.log"


class TestYamlLoading:
    """Tests for ShellSenseConfig.from_yaml and from_yaml_string."""

    def test_from_yaml_string(self) -> None:
        config = ShellSenseConfig.from_yaml_string(
            """
session:
  shell: /bin/bash
  debounce_seconds: 1.5
resolution:
  disabled_providers: [web]
"""
        )
        assert config.session.shell == "/bin/bash"
        assert config.session.debounce_seconds == 1.5
        assert config.resolution.disabled_providers == ["web"]

    def test_empty_document_gives_defaults(self) -> None:
        assert ShellSenseConfig.from_yaml_string("") == ShellSenseConfig()

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ConfigFault, match="Invalid YAML") as exc_info:
            ShellSenseConfig.from_yaml_string("session: [unclosed")
        assert exc_info.value.source == "<string>"

    def test_non_mapping(self) -> None:
        with pytest.raises(ConfigFault, match="mapping"):
            ShellSenseConfig.from_yaml_string("- a\n- b\n")

    def test_validation_failure(self) -> None:
        with pytest.raises(ConfigFault, match="Invalid configuration"):
            ShellSenseConfig.from_yaml_string("resolution:\n  max_per_error: 0\n")

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "shellsense.yaml"
        path.write_text("patterns:\n  max_context_lines: 20\n")
        assert ShellSenseConfig.from_yaml(path).patterns.max_context_lines == 20

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.yaml"
        with pytest.raises(ConfigFault) as exc_info:
            ShellSenseConfig.from_yaml(path)
        assert exc_info.value.source == str(path)
