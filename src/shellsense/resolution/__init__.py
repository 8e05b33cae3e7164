"""Resolution: provider fan-out, merging and confidence ranking."""

from shellsense.resolution.dispatcher import ResolutionDispatcher
from shellsense.resolution.models import ErrorResolution, Resolution, SourceKind
from shellsense.resolution.ranking import (
    ConfidenceRanker,
    RelevanceScore,
    extract_keywords,
    score_relevance,
    spread_confidences,
    term_rarity,
)
from shellsense.resolution.registry import ProviderRegistry, create_default_registry

__all__ = [
    "ConfidenceRanker",
    "ErrorResolution",
    "ProviderRegistry",
    "RelevanceScore",
    "Resolution",
    "ResolutionDispatcher",
    "SourceKind",
    "create_default_registry",
    "extract_keywords",
    "score_relevance",
    "spread_confidences",
    "term_rarity",
]
