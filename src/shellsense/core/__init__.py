"""Core building blocks shared by every ShellSense subsystem."""

from shellsense.core.errors import (
    ConfigFault,
    PatternFault,
    ProviderFault,
    ShellSenseError,
    StreamFault,
)
from shellsense.core.logging import get_logger

__all__ = [
    "ConfigFault",
    "PatternFault",
    "ProviderFault",
    "ShellSenseError",
    "StreamFault",
    "get_logger",
]
