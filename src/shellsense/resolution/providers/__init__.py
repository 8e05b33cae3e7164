"""Resolution providers.

Each provider implements ``async resolve(DetectedError) -> list[Resolution]``.
"""

from shellsense.resolution.providers.ai import (
    AiAnalysisProvider,
    CompletionClient,
    claude_provider,
    gemini_provider,
)
from shellsense.resolution.providers.base import BaseProvider, ResolutionProvider
from shellsense.resolution.providers.codebase import CodebaseProvider
from shellsense.resolution.providers.known import KnownSolutionsProvider
from shellsense.resolution.providers.rca import RcaProvider
from shellsense.resolution.providers.web import AiOverviewProvider, WebSearchProvider

__all__ = [
    "AiAnalysisProvider",
    "AiOverviewProvider",
    "BaseProvider",
    "CodebaseProvider",
    "CompletionClient",
    "KnownSolutionsProvider",
    "RcaProvider",
    "ResolutionProvider",
    "WebSearchProvider",
    "claude_provider",
    "gemini_provider",
]
