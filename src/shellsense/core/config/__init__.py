"""Configuration models for ShellSense.

All models are re-exported here so callers can use
``from shellsense.core.config import ...``.
"""

from shellsense.core.config.app import ShellSenseConfig
from shellsense.core.config.observability import LogConfig
from shellsense.core.config.patterns import PatternSettings
from shellsense.core.config.resolution import ResolutionConfig
from shellsense.core.config.session import DEFAULT_INTERACTIVE_PROGRAMS, SessionConfig

__all__ = [
    "DEFAULT_INTERACTIVE_PROGRAMS",
    "LogConfig",
    "PatternSettings",
    "ResolutionConfig",
    "SessionConfig",
    "ShellSenseConfig",
]
