"""Catalogue of common error signatures with well-known fixes."""

from __future__ import annotations

import re
from dataclasses import dataclass

from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution, SourceKind
from shellsense.resolution.providers.base import BaseProvider


@dataclass(frozen=True)
class KnownSolution:
    pattern: re.Pattern[str]
    title: str
    description: str
    confidence: int


KNOWN_SOLUTIONS = [
    KnownSolution(
        pattern=re.compile(r"cannot find module|no module named", re.IGNORECASE),
        title="Module Not Found",
        description=(
            "A required module is not installed. Install the project dependencies "
            "(`npm install`, `yarn install` or `pip install -r requirements.txt`)."
        ),
        confidence=80,
    ),
    KnownSolution(
        pattern=re.compile(r"EADDRINUSE|address already in use", re.IGNORECASE),
        title="Port Already in Use",
        description="Another process is using this port. Stop that process or use a different port.",
        confidence=85,
    ),
    KnownSolution(
        pattern=re.compile(r"permission denied|EACCES", re.IGNORECASE),
        title="Permission Denied",
        description=(
            "You do not have permission to access this resource. Check file ownership "
            "and mode, or run with elevated privileges (sudo on Unix)."
        ),
        confidence=75,
    ),
    KnownSolution(
        pattern=re.compile(
            r"cannot read propert(?:y|ies).*of (?:undefined|null)", re.IGNORECASE
        ),
        title="Undefined Property Access",
        description=(
            "A property is read from an undefined or null value. "
            "Add a null check before accessing the property."
        ),
        confidence=80,
    ),
]


class KnownSolutionsProvider(BaseProvider):
    """Matches the error message against the known-solution catalogue."""

    def __init__(self, catalogue: list[KnownSolution] | None = None) -> None:
        self.catalogue = catalogue if catalogue is not None else KNOWN_SOLUTIONS

    @property
    def name(self) -> str:
        return "known"

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        return [
            Resolution(
                source_kind=SourceKind.WEB,
                title=known.title,
                description=known.description,
                confidence=known.confidence,
            )
            for known in self.catalogue
            if known.pattern.search(error.message)
        ]


__all__ = ["KNOWN_SOLUTIONS", "KnownSolution", "KnownSolutionsProvider"]
