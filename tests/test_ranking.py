"""Tests for relevance scoring and confidence ranking."""

from __future__ import annotations

import pytest

from shellsense.resolution import (
    ConfidenceRanker,
    Resolution,
    SourceKind,
    extract_keywords,
    score_relevance,
    spread_confidences,
    term_rarity,
)
from shellsense.resolution.ranking import has_solution_section, raw_confidence, round_half_up


def _resolution(confidence: int, title: str = "r") -> Resolution:
    return Resolution(source_kind=SourceKind.RCA, title=title, description="", confidence=confidence)


class TestKeywords:
    """Tests for keyword extraction and rarity."""

    def test_extract_keywords(self) -> None:
        keywords = extract_keywords("ModuleNotFoundError: No module named 'requests'")
        assert keywords == ["modulenotfounderror", "module", "named", "requests"]

    def test_stop_words_and_short_tokens_dropped(self) -> None:
        assert extract_keywords("Error in the build at step 3") == ["build", "step"]

    def test_keywords_are_distinct(self) -> None:
        assert extract_keywords("timeout timeout TIMEOUT") == ["timeout"]

    @pytest.mark.parametrize(
        ("term", "weight"),
        [
            ("ebpf", 2.0),
            ("v1.2.3", 1.8),
            ("cert-manager-webhook", 1.6),
            ("upgrade", 1.3),
            ("version", 1.0),
            ("requests", 1.2),
        ],
    )
    def test_term_rarity(self, term: str, weight: float) -> None:
        assert term_rarity(term) == weight

    def test_round_half_up(self) -> None:
        assert round_half_up(72.5) == 73
        assert round_half_up(18.0) == 18
        assert round_half_up(17.4) == 17


class TestScoreRelevance:
    """Tests for document scoring."""

    def test_exact_score(self) -> None:
        result = score_relevance("npm registry timeout", ["registry", "timeout"], "npm")
        # type 40 + phrase 30 + 2 * round(15 * 1.2) - short document 10
        assert result.score == 96
        assert result.type_matched is True
        assert result.phrases_matched == 1
        assert result.keyword_scores == {"registry": 18, "timeout": 18}

    def test_repeats_add_up_to_cap(self) -> None:
        once = score_relevance("timeout", ["timeout"], "zzz")
        many = score_relevance("timeout " * 10, ["timeout"], "zzz")
        assert many.keyword_scores["timeout"] == round_half_up((15 + 3 * 5) * 1.2)
        assert many.score > once.score

    def test_monotone_in_distinct_keyword_matches(self) -> None:
        keywords = ["alpha", "bravo", "charlie", "delta", "echo"]
        padding = " filler" * 100
        previous = -1
        for count in range(len(keywords) + 1):
            # Reverse order so no adjacent pair forms a phrase
            text = " ".join(reversed(keywords[:count])) + padding
            score = score_relevance(text, keywords, "zzz").score
            assert score > previous
            previous = score

    def test_solution_words_bonus(self) -> None:
        plain = score_relevance("x" * 600, ["kw"], "zzz")
        with_fix = score_relevance("x" * 600 + " the fix is", ["kw"], "zzz")
        assert plain.has_solution_words is False
        assert with_fix.has_solution_words is True
        assert with_fix.score - plain.score == 10 + 15

    def test_file_line_reference_bonus(self) -> None:
        base = score_relevance("y" * 600, [], "zzz")
        with_ref = score_relevance("y" * 600 + " /src/app/main.py:42", [], "zzz")
        assert with_ref.score - base.score == 10

    def test_score_never_negative(self) -> None:
        assert score_relevance("short", ["absent"], "zzz").score == 0

    def test_inclusion_threshold(self) -> None:
        assert score_relevance("npm registry timeout", ["registry", "timeout"], "npm").included
        assert not score_relevance("nothing", ["registry"], "npm").included


class TestConfidence:
    """Tests for score-to-confidence mapping and spreading."""

    def test_raw_confidence(self) -> None:
        assert raw_confidence(20) == 60
        assert raw_confidence(500) == 95
        assert raw_confidence(20, solution_section=True) == 63
        assert raw_confidence(200, solution_section=True) == 95

    def test_solution_section_detection(self) -> None:
        assert has_solution_section("## Solution\nRestart it")
        assert not has_solution_section("Solution: restart it")
        assert not has_solution_section(None)

    def test_spread_values(self) -> None:
        ranked = spread_confidences([_resolution(88), _resolution(90), _resolution(86)])
        assert [r.confidence for r in ranked] == [90, 73, 50]

    def test_spread_never_raises_confidence(self) -> None:
        raw = [60, 58, 57, 55, 54, 52]
        ranked = spread_confidences([_resolution(c) for c in raw], keep=10)
        for resolution, original in zip(ranked, sorted(raw, reverse=True), strict=True):
            assert resolution.confidence <= original

    def test_spread_keeps_top_at_least_second(self) -> None:
        ranked = spread_confidences([_resolution(c) for c in (70, 70, 70)])
        assert ranked[0].confidence >= ranked[1].confidence

    def test_single_result_unchanged(self) -> None:
        assert spread_confidences([_resolution(81)])[0].confidence == 81

    def test_spread_keeps_top_five(self) -> None:
        ranked = spread_confidences([_resolution(90 - i) for i in range(8)])
        assert len(ranked) == 5

    def test_ranker_for_message(self) -> None:
        ranker = ConfidenceRanker.for_message("npm ERR! registry timeout", "npm")
        assert ranker.keywords == ["registry", "timeout"]
        relevance = ranker.score("npm registry timeout")
        assert ranker.confidence(relevance) == raw_confidence(relevance.score)
