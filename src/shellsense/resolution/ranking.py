"""Relevance scoring and confidence ranking.

Scores a knowledge document against a detected error. Keywords matched in
the document are weighted by how topic-specific they look (term rarity),
and the resulting score maps onto a confidence. Percentile spreading then
separates results that would otherwise share near-identical confidences.

All point values are empirically tuned constants from
``shellsense.core.constants`` and must be kept as they are.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from shellsense.core.constants import (
    CONFIDENCE_BASE,
    CONFIDENCE_CAP,
    CONFIDENCE_SECTION_BONUS,
    RELEVANCE_FILE_LINE_BONUS,
    RELEVANCE_INCLUSION_THRESHOLD,
    RELEVANCE_INDICATOR_BONUS,
    RELEVANCE_KEYWORD_BASE,
    RELEVANCE_KEYWORD_REPEAT,
    RELEVANCE_KEYWORD_REPEAT_CAP,
    RELEVANCE_MULTI_KEYWORD_BONUS,
    RELEVANCE_MULTI_KEYWORD_MIN,
    RELEVANCE_PHRASE_BONUS,
    RELEVANCE_SHORT_DOC_CHARS,
    RELEVANCE_SHORT_DOC_PENALTY,
    RELEVANCE_SOLUTION_WORD_BONUS,
    RELEVANCE_TYPE_BONUS,
    SPREAD_KEEP,
    SPREAD_RANGE,
    SPREAD_TOP,
)
from shellsense.resolution.models import Resolution

STOP_WORDS = frozenset({"error", "exception", "the", "a", "an", "is", "at", "in", "of", "to"})

SOLUTION_INDICATORS = (
    "solution",
    "fix",
    "resolved",
    "workaround",
    "resolution",
    "how to fix",
    "to resolve",
    "steps to",
    "prevention",
    "root cause",
)

# Indicators that also mark the document as having a solution section
_SOLUTION_WORDS = frozenset({"solution", "resolution", "fix"})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_FILE_LINE = re.compile(r"/[\w/-]+\.\w+:\d+")

# Term rarity tiers, most specific first
_PRODUCT_TERMS = re.compile(r"^(bpfman|ebpf|ginkgo|konflux|subscription|daemon)$")
_VERSION_TERM = re.compile(r"^v?\d+\.\d+(\.\d+)?(-\w+)?$")
_MEDIUM_TERMS = re.compile(r"^(mismatch|upgrade|deployment|release|operator|alignment)$")
_COMMON_TERMS = re.compile(r"^(version|test|build|error|issue|problem)$")

_SECTION_HEADINGS = ("## Solution", "## Resolution", "## Fix")


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def extract_keywords(message: str) -> list[str]:
    """Distinct lowercase tokens longer than 3 characters, minus stop words.

    Non-alphanumeric characters become separators, so the order of first
    appearance is preserved.
    """
    words = _NON_ALNUM.sub(" ", message.lower()).split()
    seen: dict[str, None] = {}
    for word in words:
        if len(word) > 3 and word not in STOP_WORDS:
            seen.setdefault(word, None)
    return list(seen)


def term_rarity(term: str) -> float:
    """Multiplier for a keyword's score: higher for topic-specific terms."""
    term = term.lower()
    if _PRODUCT_TERMS.match(term):
        return 2.0
    if _VERSION_TERM.match(term):
        return 1.8
    if "-" in term and len(term) > 8:
        return 1.6
    if _MEDIUM_TERMS.match(term):
        return 1.3
    if _COMMON_TERMS.match(term):
        return 1.0
    return 1.2


def adjacent_phrases(keywords: Sequence[str]) -> list[str]:
    return [f"{a} {b}" for a, b in zip(keywords, keywords[1:], strict=False)]


@dataclass
class RelevanceScore:
    """Relevance of one document, with the parts that produced it."""

    score: int
    keyword_scores: dict[str, int] = field(default_factory=dict)
    type_matched: bool = False
    phrases_matched: int = 0
    has_solution_words: bool = False

    @property
    def included(self) -> bool:
        return self.score >= RELEVANCE_INCLUSION_THRESHOLD


def score_relevance(text: str, keywords: Sequence[str], error_type: str) -> RelevanceScore:
    """Score how relevant ``text`` is to an error with these keywords."""
    lower = text.lower()
    score = 0

    type_matched = error_type.lower() in lower
    if type_matched:
        score += RELEVANCE_TYPE_BONUS

    phrases = 0
    for phrase in adjacent_phrases(keywords):
        if phrase in lower:
            phrases += 1
            score += RELEVANCE_PHRASE_BONUS

    keyword_scores: dict[str, int] = {}
    for keyword in keywords:
        occurrences = len(re.findall(rf"\b{re.escape(keyword.lower())}\b", lower))
        if not occurrences:
            continue
        repeats = min(occurrences - 1, RELEVANCE_KEYWORD_REPEAT_CAP)
        base = RELEVANCE_KEYWORD_BASE + repeats * RELEVANCE_KEYWORD_REPEAT
        weighted = round_half_up(base * term_rarity(keyword))
        keyword_scores[keyword] = weighted
        score += weighted

    if len(keyword_scores) >= RELEVANCE_MULTI_KEYWORD_MIN:
        score += RELEVANCE_MULTI_KEYWORD_BONUS

    has_solution_words = False
    for indicator in SOLUTION_INDICATORS:
        if indicator in lower:
            score += RELEVANCE_INDICATOR_BONUS
            if indicator in _SOLUTION_WORDS:
                has_solution_words = True
    if has_solution_words:
        score += RELEVANCE_SOLUTION_WORD_BONUS

    if _FILE_LINE.search(text):
        score += RELEVANCE_FILE_LINE_BONUS

    if len(text) < RELEVANCE_SHORT_DOC_CHARS:
        score -= RELEVANCE_SHORT_DOC_PENALTY

    return RelevanceScore(
        score=max(score, 0),
        keyword_scores=keyword_scores,
        type_matched=type_matched,
        phrases_matched=phrases,
        has_solution_words=has_solution_words,
    )


def has_solution_section(solution: str | None) -> bool:
    return bool(solution) and any(h in solution for h in _SECTION_HEADINGS)


def raw_confidence(score: int, *, solution_section: bool = False) -> int:
    """Map a relevance score onto a confidence in [50, 95]."""
    confidence = min(CONFIDENCE_BASE + score // 2, CONFIDENCE_CAP)
    if solution_section:
        confidence = min(confidence + CONFIDENCE_SECTION_BONUS, CONFIDENCE_CAP)
    return confidence


def spread_confidences(resolutions: Sequence[Resolution], keep: int = SPREAD_KEEP) -> list[Resolution]:
    """Differentiate one provider's results by rank.

    Results are sorted by raw confidence; with two or more, each confidence
    becomes the lower of its raw value and a rank-based value falling
    linearly from 95 (best) to 50 (worst). Only the top ``keep`` survive.
    """
    ranked = sorted(resolutions, key=lambda r: r.confidence, reverse=True)
    count = len(ranked)
    if count > 1:
        for index, resolution in enumerate(ranked):
            percentile = index / (count - 1)
            resolution.confidence = min(
                resolution.confidence, round_half_up(SPREAD_TOP - percentile * SPREAD_RANGE)
            )
    return ranked[:keep]


class ConfidenceRanker:
    """Scores documents for one error and turns them into confidences.

    Example:
        ranker = ConfidenceRanker.for_message("npm ERR! code E404", "npm")
        relevance = ranker.score(document_text)
        if relevance.included:
            confidence = ranker.confidence(relevance, solution_text)
    """

    def __init__(self, keywords: Sequence[str], error_type: str) -> None:
        self.keywords = list(keywords)
        self.error_type = error_type

    @classmethod
    def for_message(cls, message: str, error_type: str) -> ConfidenceRanker:
        return cls(extract_keywords(message), error_type)

    def score(self, text: str) -> RelevanceScore:
        return score_relevance(text, self.keywords, self.error_type)

    def confidence(self, relevance: RelevanceScore, solution: str | None = None) -> int:
        return raw_confidence(relevance.score, solution_section=has_solution_section(solution))

    @staticmethod
    def spread(resolutions: Sequence[Resolution], keep: int = SPREAD_KEEP) -> list[Resolution]:
        return spread_confidences(resolutions, keep)


__all__ = [
    "ConfidenceRanker",
    "RelevanceScore",
    "SOLUTION_INDICATORS",
    "STOP_WORDS",
    "adjacent_phrases",
    "extract_keywords",
    "has_solution_section",
    "raw_confidence",
    "round_half_up",
    "score_relevance",
    "spread_confidences",
    "term_rarity",
]
