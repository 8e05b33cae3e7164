"""Base classes and protocols for resolution providers.

A provider turns one DetectedError into zero or more Resolutions. Providers
know nothing about each other: the dispatcher runs them concurrently and
a failing provider only loses its own results.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Protocol

from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution

# Directories never descended into by filesystem searches
SKIPPED_DIRECTORIES = frozenset({
    ".git",
    ".hg",
    ".svn",
    ".tox",
    ".venv",
    "venv",
    "env",
    "__pycache__",
    "node_modules",
    ".mypy_cache",
    ".pytest_cache",
    "dist",
    "build",
})


class ResolutionProvider(Protocol):
    """Protocol for knowledge sources.

    Each provider must implement:
    - name: Unique identifier, used in configuration and logs
    - resolve(): Produce resolutions for an error
    """

    @property
    def name(self) -> str:
        """Unique identifier for this provider."""
        ...

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        """Return resolutions for ``error``, possibly none.

        Raising is allowed; the dispatcher treats it as zero results.
        """
        ...


class BaseProvider:
    """Base class providing common provider functionality."""

    @property
    def name(self) -> str:
        """Override in subclass."""
        raise NotImplementedError

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        """Override in subclass."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


def iter_files(
    roots: Sequence[Path],
    suffixes: frozenset[str],
    limit: int,
) -> Iterator[Path]:
    """Yield up to ``limit`` files under ``roots`` with one of ``suffixes``.

    Skips SKIPPED_DIRECTORIES and anything that cannot be listed.
    """
    count = 0
    for root in roots:
        if not root.is_dir():
            continue
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES)
            for filename in sorted(filenames):
                if Path(filename).suffix.lstrip(".").lower() not in suffixes:
                    continue
                yield Path(dirpath) / filename
                count += 1
                if count >= limit:
                    return


def read_text(path: Path) -> str | None:
    """Read a text file, or None if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


__all__ = [
    "BaseProvider",
    "ResolutionProvider",
    "SKIPPED_DIRECTORIES",
    "iter_files",
    "read_text",
]
