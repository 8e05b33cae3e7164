"""Top-level ShellSense configuration."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from shellsense.core.config.observability import LogConfig
from shellsense.core.config.patterns import PatternSettings
from shellsense.core.config.resolution import ResolutionConfig
from shellsense.core.config.session import SessionConfig
from shellsense.core.errors import ConfigFault


class ShellSenseConfig(BaseModel):
    """Aggregate configuration loaded from YAML.

    Example YAML:
        session:
          shell: /bin/bash
        patterns:
          max_context_lines: 20
        resolution:
          max_per_error: 5
        logging:
          level: INFO
    """

    session: SessionConfig = Field(default_factory=SessionConfig)
    patterns: PatternSettings = Field(default_factory=PatternSettings)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> ShellSenseConfig:
        """Load configuration from a YAML file.

        Raises:
            ConfigFault: If the file cannot be read, parsed or validated.
        """
        try:
            with open(path) as f:
                text = f.read()
        except OSError as e:
            raise ConfigFault(f"Cannot read config: {e}", source=str(path)) from e
        return cls._load(text, source=str(path))

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> ShellSenseConfig:
        """Load configuration from a YAML string."""
        return cls._load(yaml_str, source="<string>")

    @classmethod
    def _load(cls, text: str, *, source: str) -> ShellSenseConfig:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigFault(f"Invalid YAML: {e}", source=source) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigFault("Top-level YAML value must be a mapping", source=source)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigFault(f"Invalid configuration: {e}", source=source) from e
