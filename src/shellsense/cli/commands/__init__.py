# shellsense/cli/commands: one module per CLI command.

from .analyze import analyze
from .patterns import patterns
from .shell import shell

__all__ = [
    "analyze",
    "patterns",
    "shell",
]
