"""Data models for resolutions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from shellsense.detection.models import DetectedError


class SourceKind(str, Enum):
    """Where a resolution came from."""

    CODE = "code"  # local codebase search
    RCA = "rca"  # curated knowledge-base documents
    WEB = "web"  # search links and known-solution catalogue
    AI = "ai"  # AI analysis


@dataclass
class Resolution:
    """A candidate fix for a detected error.

    ``confidence`` is clamped into [0, 100]. It is rewritten at most once
    after creation, by percentile spreading.
    """

    source_kind: SourceKind
    title: str
    description: str
    confidence: int
    code_snippet: str | None = None
    file: str | None = None
    line: int | None = None
    url: str | None = None
    provider: str = ""

    def __post_init__(self) -> None:
        self.confidence = max(0, min(100, int(self.confidence)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source_kind.value,
            "provider": self.provider,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "code_snippet": self.code_snippet,
            "file": self.file,
            "line": self.line,
            "url": self.url,
        }


@dataclass
class ErrorResolution:
    """A detected error with its ranked resolutions."""

    error: DetectedError
    resolutions: list[Resolution] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def best(self) -> Resolution | None:
        return self.resolutions[0] if self.resolutions else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error.to_dict(),
            "resolutions": [r.to_dict() for r in self.resolutions],
            "timestamp": self.timestamp.isoformat(),
        }


__all__ = ["ErrorResolution", "Resolution", "SourceKind"]
