"""Local codebase search.

Looks through the project for comments and error handlers that mention the
error's keywords, documentation files that discuss it, and the exact source
location when the error names a file and line.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence
from pathlib import Path

from shellsense.core.logging import get_logger
from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution, SourceKind
from shellsense.resolution.providers.base import BaseProvider, iter_files, read_text
from shellsense.resolution.ranking import extract_keywords

_logger = get_logger("provider.codebase")

COMMENT_CONFIDENCE = 60
HANDLER_CONFIDENCE = 70
DOC_CONFIDENCE_PER_KEYWORD = 15
DOC_CONFIDENCE_CAP = 50
LOCATION_CONFIDENCE = 90

_COMMENT_SUFFIXES = frozenset({"ts", "js", "py", "java", "go", "cpp", "c", "cs", "rb", "php"})
_HANDLER_SUFFIXES = frozenset({"ts", "js", "py", "java", "go"})
_DOC_SUFFIXES = frozenset({"md", "txt", "rst"})

_COMMENT_MARKERS = ("//", "#", "/*")
_BRACE_HANDLER = re.compile(r"(catch|except)\s*\([^)]*\)\s*{([^}]+)}", re.IGNORECASE)
_PYTHON_HANDLER = re.compile(r"^[ \t]*except\b[^:\n]*:[^\n]*\n(?:[ \t]+[^\n]*\n?){1,8}", re.MULTILINE)

COMMENT_CONTEXT_LINES = 5
LOCATION_CONTEXT_LINES = 10


def _snippet(lines: Sequence[str], index: int, radius: int) -> str:
    start = max(0, index - radius)
    end = min(len(lines), index + radius + 1)
    return "\n".join(lines[start:end])


class CodebaseProvider(BaseProvider):
    """Searches source and documentation files under the search roots."""

    def __init__(
        self,
        search_roots: Sequence[Path] = (Path("."),),
        *,
        max_files: int = 200,
        max_hits: int = 20,
    ) -> None:
        self.search_roots = [Path(r) for r in search_roots]
        self.max_files = max_files
        self.max_hits = max_hits

    @property
    def name(self) -> str:
        return "codebase"

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        return await asyncio.to_thread(self._search, error)

    def _search(self, error: DetectedError) -> list[Resolution]:
        keywords = extract_keywords(error.message)
        resolutions: list[Resolution] = []
        if keywords:
            resolutions.extend(self._search_comments(keywords))
            resolutions.extend(self._search_handlers(keywords))
            resolutions.extend(self._search_docs(keywords))
        location = self._error_location(error)
        if location is not None:
            resolutions.append(location)
        _logger.debug("provider.codebase.searched", keywords=keywords, found=len(resolutions))
        return resolutions

    def _search_comments(self, keywords: list[str]) -> list[Resolution]:
        hits: list[Resolution] = []
        for path in iter_files(self.search_roots, _COMMENT_SUFFIXES, self.max_files):
            text = read_text(path)
            if text is None:
                continue
            lines = text.split("\n")
            for index, line in enumerate(lines):
                lower = line.lower()
                if not any(marker in lower for marker in _COMMENT_MARKERS):
                    continue
                if not any(k in lower for k in keywords):
                    continue
                hits.append(Resolution(
                    source_kind=SourceKind.CODE,
                    title=f"Similar error handling found in {path.name}",
                    description=f"Found comment or code handling a similar error at line {index + 1}",
                    code_snippet=_snippet(lines, index, COMMENT_CONTEXT_LINES),
                    file=str(path),
                    line=index + 1,
                    confidence=COMMENT_CONFIDENCE,
                ))
                if len(hits) >= self.max_hits:
                    return hits
        return hits

    def _search_handlers(self, keywords: list[str]) -> list[Resolution]:
        hits: list[Resolution] = []
        for path in iter_files(self.search_roots, _HANDLER_SUFFIXES, self.max_files):
            text = read_text(path)
            if text is None:
                continue
            pattern = _PYTHON_HANDLER if path.suffix == ".py" else _BRACE_HANDLER
            for match in pattern.finditer(text):
                block = match.group(0)
                if not any(k in block.lower() for k in keywords):
                    continue
                hits.append(Resolution(
                    source_kind=SourceKind.CODE,
                    title=f"Error handler found in {path.name}",
                    description="Found error handling code that may help resolve this issue",
                    code_snippet=block.rstrip(),
                    file=str(path),
                    line=text.count("\n", 0, match.start()) + 1,
                    confidence=HANDLER_CONFIDENCE,
                ))
                if len(hits) >= self.max_hits:
                    return hits
        return hits

    def _search_docs(self, keywords: list[str]) -> list[Resolution]:
        hits: list[Resolution] = []
        for path in iter_files(self.search_roots, _DOC_SUFFIXES, self.max_files):
            text = read_text(path)
            if text is None:
                continue
            lower = text.lower()
            matched = sum(1 for k in keywords if k in lower)
            if not matched:
                continue
            hits.append(Resolution(
                source_kind=SourceKind.CODE,
                title=f"Documentation: {path.name}",
                description=f"Found {matched} matching keywords in documentation",
                file=str(path),
                confidence=min(matched * DOC_CONFIDENCE_PER_KEYWORD, DOC_CONFIDENCE_CAP),
            ))
        return hits

    def _resolve_path(self, file: str) -> Path | None:
        candidate = Path(file)
        if candidate.is_absolute():
            return candidate if candidate.is_file() else None
        for root in self.search_roots:
            if (root / candidate).is_file():
                return root / candidate
        return None

    def _error_location(self, error: DetectedError) -> Resolution | None:
        if not error.file or not error.line:
            return None
        path = self._resolve_path(error.file)
        if path is None:
            return None
        text = read_text(path)
        if text is None:
            return None
        lines = text.split("\n")
        if error.line > len(lines):
            return None
        return Resolution(
            source_kind=SourceKind.CODE,
            title=f"Error location in {path.name}",
            description=f"Error occurred at line {error.line}",
            code_snippet=_snippet(lines, error.line - 1, LOCATION_CONTEXT_LINES),
            file=str(path),
            line=error.line,
            confidence=LOCATION_CONFIDENCE,
        )


__all__ = ["CodebaseProvider"]
