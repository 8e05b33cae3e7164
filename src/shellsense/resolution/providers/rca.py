"""RCA (root-cause-analysis) knowledge-base search.

RCA documents are curated write-ups of past incidents. They are found in
configured paths, conventional directories under each search root, and
anywhere in the roots when the file name looks like an RCA. Every document
is scored for relevance; documents above the inclusion threshold become
resolutions carrying the document's solution section and first code block.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterator, Sequence
from pathlib import Path

from shellsense.core.constants import SPREAD_KEEP
from shellsense.core.logging import get_logger
from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution, SourceKind
from shellsense.resolution.providers.base import (
    SKIPPED_DIRECTORIES,
    BaseProvider,
    iter_files,
    read_text,
)
from shellsense.resolution.ranking import ConfidenceRanker

_logger = get_logger("provider.rca")

CONVENTIONAL_DIRECTORIES = ("logs/rca", "rca", "docs/rca", ".rca")

RCA_FILE_NAME = re.compile(r"rca|root.?cause|troubleshoot|postmortem|incident", re.IGNORECASE)
_RCA_SUFFIXES = frozenset({"md", "txt", "log", "json"})

# Tried in order; the first match is the solution
_SOLUTION_SECTIONS = [
    re.compile(r"## Solution[\s\S]*?(?=##|\Z)", re.IGNORECASE),
    re.compile(r"## Resolution[\s\S]*?(?=##|\Z)", re.IGNORECASE),
    re.compile(r"## Fix[\s\S]*?(?=##|\Z)", re.IGNORECASE),
    re.compile(r"### Solution[\s\S]*?(?=###|##|\Z)", re.IGNORECASE),
    re.compile(r"### Resolution[\s\S]*?(?=###|##|\Z)", re.IGNORECASE),
    re.compile(r"### Fix[\s\S]*?(?=###|##|\Z)", re.IGNORECASE),
    re.compile(r"Solution:[\s\S]*?(?=\n\n|\Z)", re.IGNORECASE),
    re.compile(r"Resolution:[\s\S]*?(?=\n\n|\Z)", re.IGNORECASE),
    re.compile(r"How to fix:[\s\S]*?(?=\n\n|\Z)", re.IGNORECASE),
]
_STEPS = re.compile(
    r"(?:Steps?(?:\s+to\s+(?:fix|resolve|solve))?|Instructions?):?\s*\n((?:[ \t]*(?:\d+\.|-|\*)\s+.+\n?)+)",
    re.IGNORECASE,
)
_FIX_WORDS = ("fix", "solution", "resolve", "workaround", "to solve")
_ANY_CODE = re.compile(r"```[\s\S]*?```|`[^`]+`")
_FENCED_CODE = re.compile(r"```\w*\n([\s\S]*?)```")
_FENCED_BLOCK = re.compile(r"```\w*\n[\s\S]*?```")
_INLINE_CODE = re.compile(r"`([^`]+)`")

INLINE_CODE_MIN_CHARS = 10


def extract_solution(text: str, keywords: Sequence[str]) -> str | None:
    """Pull the most useful fix description out of an RCA document.

    Prefers an explicit solution section, then a numbered or bulleted steps
    list, then a paragraph where a keyword and a fix word share a line
    (paragraphs with code win).
    """
    for pattern in _SOLUTION_SECTIONS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()

    steps = _STEPS.search(text)
    if steps:
        return f"Steps to resolve:\n{steps.group(1).strip()}"

    lines = text.split("\n")
    first: str | None = None
    for index, line in enumerate(lines):
        lower = line.lower()
        if not any(k in lower for k in keywords):
            continue
        if not any(w in lower for w in _FIX_WORDS):
            continue
        paragraph = "\n".join(lines[max(0, index - 3):min(len(lines), index + 10)])
        if _ANY_CODE.search(paragraph):
            return paragraph
        if first is None:
            first = paragraph
    return first


def extract_code_blocks(text: str) -> list[str]:
    """Fenced code blocks first, then inline code longer than 10 characters."""
    blocks = [m.group(1).strip() for m in _FENCED_CODE.finditer(text)]
    prose = _FENCED_BLOCK.sub("", text)
    blocks.extend(
        m.group(1) for m in _INLINE_CODE.finditer(prose) if len(m.group(1)) > INLINE_CODE_MIN_CHARS
    )
    return blocks


def strip_code(solution: str) -> str:
    text = _FENCED_BLOCK.sub("[See code snippet below]", solution)
    return _INLINE_CODE.sub("", text).strip()


class RcaProvider(BaseProvider):
    """Scores RCA documents against an error and returns the best few."""

    def __init__(
        self,
        search_roots: Sequence[Path] = (Path("."),),
        rca_paths: Sequence[Path] = (),
        *,
        max_results: int = SPREAD_KEEP,
        max_files: int = 200,
    ) -> None:
        self.search_roots = [Path(r) for r in search_roots]
        self.rca_paths = [Path(p) for p in rca_paths]
        self.max_results = max_results
        self.max_files = max_files

    @property
    def name(self) -> str:
        return "rca"

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        return await asyncio.to_thread(self._search, error)

    def document_paths(self) -> list[Path]:
        """Every candidate RCA document, de-duplicated, in discovery order."""
        found: dict[Path, None] = {}
        for path in self._iter_candidates():
            try:
                found.setdefault(path.resolve(), None)
            except OSError:
                continue
            if len(found) >= self.max_files:
                break
        return list(found)

    def _iter_candidates(self) -> Iterator[Path]:
        directories = list(self.rca_paths)
        for root in self.search_roots:
            directories.extend(root / d for d in CONVENTIONAL_DIRECTORIES)
        for location in directories:
            if location.is_file():
                if RCA_FILE_NAME.search(location.name):
                    yield location
            elif location.is_dir():
                yield from self._walk_rca_dir(location)
        for path in iter_files(self.search_roots, _RCA_SUFFIXES, self.max_files * 10):
            if RCA_FILE_NAME.search(path.name):
                yield path

    def _walk_rca_dir(self, directory: Path) -> Iterator[Path]:
        try:
            entries = sorted(directory.iterdir())
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                if entry.name not in SKIPPED_DIRECTORIES:
                    yield from self._walk_rca_dir(entry)
            elif entry.is_file() and RCA_FILE_NAME.search(entry.name):
                yield entry

    def _search(self, error: DetectedError) -> list[Resolution]:
        ranker = ConfidenceRanker.for_message(error.message, error.type)
        candidates: list[Resolution] = []
        for path in self.document_paths():
            resolution = self._analyze(path, error, ranker)
            if resolution is not None:
                candidates.append(resolution)
        ranked = ranker.spread(candidates, keep=self.max_results)
        _logger.debug(
            "provider.rca.searched",
            keywords=ranker.keywords,
            candidates=len(candidates),
            returned=len(ranked),
        )
        return ranked

    def _analyze(self, path: Path, error: DetectedError, ranker: ConfidenceRanker) -> Resolution | None:
        text = read_text(path)
        if text is None:
            return None
        relevance = ranker.score(text)
        if not relevance.included:
            return None

        solution = extract_solution(text, ranker.keywords)
        code_snippet: str | None = None
        if solution:
            blocks = extract_code_blocks(solution)
            if blocks:
                code_snippet = blocks[0]

        description = solution or f"Found relevant RCA documentation for {error.type} error"
        if solution and code_snippet:
            description = strip_code(solution)

        return Resolution(
            source_kind=SourceKind.RCA,
            title=f"RCA: {path.name}",
            description=description,
            code_snippet=code_snippet,
            file=str(path),
            confidence=ranker.confidence(relevance, solution),
        )


__all__ = [
    "CONVENTIONAL_DIRECTORIES",
    "RCA_FILE_NAME",
    "RcaProvider",
    "extract_code_blocks",
    "extract_solution",
    "strip_code",
]
