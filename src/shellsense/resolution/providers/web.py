"""Web search links and documentation references.

No network access happens here: these providers only build URLs that the
presentation layer can open.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from urllib.parse import quote

from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution, SourceKind
from shellsense.resolution.providers.base import BaseProvider

SEARCH_CONFIDENCE = 50
DOCS_CONFIDENCE = 60
ERROR_GUIDE_CONFIDENCE = 65
AI_OVERVIEW_CONFIDENCE = 75

QUERY_MAX_CHARS = 200

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Technology:
    name: str
    id: str
    docs_url: str
    guide_url: str | None = None


TECHNOLOGIES = {
    "typescript": Technology(
        "TypeScript", "typescript", "https://www.typescriptlang.org/docs/",
        "https://www.typescriptlang.org/docs/handbook/intro.html",
    ),
    "npm": Technology("npm", "npm", "https://docs.npmjs.com/"),
    "python": Technology(
        "Python", "python", "https://docs.python.org/",
        "https://docs.python.org/3/library/exceptions.html",
    ),
    "java": Technology("Java", "java", "https://docs.oracle.com/en/java/"),
    "go": Technology("Go", "go", "https://go.dev/doc/"),
    "react": Technology("React", "react", "https://react.dev/", "https://react.dev/reference/react"),
    "nodejs": Technology(
        "Node.js", "nodejs", "https://nodejs.org/docs/", "https://nodejs.org/api/errors.html"
    ),
    "docker": Technology("Docker", "docker", "https://docs.docker.com/"),
    "git": Technology("Git", "git", "https://git-scm.com/doc"),
}


def encode_query(query: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(query, safe="-_.!~*'()")


def clean_query(query: str) -> str:
    return _WHITESPACE.sub(" ", query).strip()[:QUERY_MAX_CHARS]


def build_search_query(error: DetectedError) -> str:
    query = f"{error.type} {error.message}" if error.type else error.message
    return clean_query(query)


def detect_technology(error: DetectedError) -> Technology | None:
    """Guess the technology behind an error from its type and message."""
    message = error.message.lower()
    kind = error.type.lower()
    if kind == "typescript" or "typescript" in message:
        return TECHNOLOGIES["typescript"]
    if kind == "npm" or "npm" in message:
        return TECHNOLOGIES["npm"]
    if kind == "python" or "python" in message:
        return TECHNOLOGIES["python"]
    if kind == "java" or "java" in message:
        return TECHNOLOGIES["java"]
    if kind == "go" or "golang" in message:
        return TECHNOLOGIES["go"]
    if "react" in message:
        return TECHNOLOGIES["react"]
    if kind == "node" or "node" in message:
        return TECHNOLOGIES["nodejs"]
    if "docker" in message:
        return TECHNOLOGIES["docker"]
    if "git" in message:
        return TECHNOLOGIES["git"]
    return None


class WebSearchProvider(BaseProvider):
    """Search links for Stack Overflow, GitHub Issues and Google, plus docs."""

    @property
    def name(self) -> str:
        return "web"

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        query = build_search_query(error)
        encoded = encode_query(query)
        sites = [
            ("Stack Overflow", f"https://stackoverflow.com/search?q={encoded}"),
            ("GitHub Issues", f"https://github.com/search?type=issues&q={encoded}"),
            ("Google", f"https://www.google.com/search?q={encoded}"),
        ]
        resolutions = [
            Resolution(
                source_kind=SourceKind.WEB,
                title=f"Search on {site}",
                description=f'Search {site} for "{query}"',
                url=url,
                confidence=SEARCH_CONFIDENCE,
            )
            for site, url in sites
        ]

        tech = detect_technology(error)
        if tech is not None:
            resolutions.append(Resolution(
                source_kind=SourceKind.WEB,
                title=f"{tech.name} Documentation",
                description=f"Check official {tech.name} documentation for this error",
                url=tech.docs_url,
                confidence=DOCS_CONFIDENCE,
            ))
            if tech.guide_url:
                resolutions.append(Resolution(
                    source_kind=SourceKind.WEB,
                    title=f"{tech.name} Error Guide",
                    description=f"Official error reference for {error.type}",
                    url=tech.guide_url,
                    confidence=ERROR_GUIDE_CONFIDENCE,
                ))
        return resolutions


class AiOverviewProvider(BaseProvider):
    """A Google search link phrased to trigger an AI overview."""

    @property
    def name(self) -> str:
        return "ai-overview"

    @staticmethod
    def build_query(error: DetectedError) -> str:
        query = f"{error.type} error: " if error.type else ""
        query += error.message
        if error.file:
            query += f" in {PurePath(error.file).name}"
        return clean_query(query)

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        query = self.build_query(error)
        return [Resolution(
            source_kind=SourceKind.WEB,
            title="Search with AI overview (Google)",
            description=f'Opens Google Search with an AI overview analysing: "{error.message}"',
            url=f"https://www.google.com/search?q={encode_query(query)}",
            confidence=AI_OVERVIEW_CONFIDENCE,
        )]


__all__ = [
    "AiOverviewProvider",
    "TECHNOLOGIES",
    "Technology",
    "WebSearchProvider",
    "build_search_query",
    "detect_technology",
    "encode_query",
]
