"""Tests for pattern models, the built-in catalogue and source merging."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from shellsense.core.config import PatternSettings
from shellsense.core.errors import ConfigFault
from shellsense.detection import (
    BUILTIN_PATTERNS,
    ErrorPattern,
    PatternSource,
    load_patterns,
    merge_patterns,
    parse_source,
)


def _record(name: str, priority: int | None = None, **extra: object) -> dict[str, object]:
    record: dict[str, object] = {"name": name, "type": "t", "pattern": name}
    if priority is not None:
        record["priority"] = priority
    record.update(extra)
    return record


class TestErrorPattern:
    """Tests for the ErrorPattern model."""

    def test_camel_case_aliases(self) -> None:
        pattern = ErrorPattern.model_validate({
            "name": "ts",
            "type": "typescript",
            "pattern": r"error (TS\d+)",
            "groupConsecutive": True,
            "contextExtraction": {"linesAbove": 0, "linesBelow": 5, "includeStackTrace": True},
            "extractFields": {"filePath": {"regex": r"(\S+\.ts)", "group": 1}},
        })
        assert pattern.regex == r"error (TS\d+)"
        assert pattern.group_consecutive is True
        assert pattern.context.above == 0
        assert pattern.context.below == 5
        assert pattern.context.include_stack_trace is True
        assert pattern.field_extractors["filePath"].group == 1

    def test_context_defaults(self) -> None:
        pattern = ErrorPattern.model_validate(_record("x"))
        assert pattern.context.above == 1
        assert pattern.context.below == 3
        assert pattern.context.stack_trace_depth == 10
        assert pattern.priority is None

    def test_missing_regex_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ErrorPattern.model_validate({"name": "x", "type": "t"})

    def test_patterns_are_immutable(self) -> None:
        pattern = ErrorPattern.model_validate(_record("x"))
        with pytest.raises(ValidationError):
            pattern.name = "y"  # type: ignore[misc]


class TestBuiltinCatalogue:
    """Tests for the built-in patterns."""

    def test_all_builtins_validate(self) -> None:
        patterns = parse_source(PatternSource("builtin", BUILTIN_PATTERNS))
        assert len(patterns) == len(BUILTIN_PATTERNS)

    def test_builtin_names_unique(self) -> None:
        names = [p["name"] for p in BUILTIN_PATTERNS]
        assert len(names) == len(set(names))


class TestParseSource:
    """Tests for source validation."""

    def test_accepts_mapping_layout(self) -> None:
        source = PatternSource("file", {"patterns": [_record("a")]})
        assert [p.name for p in parse_source(source)] == ["a"]

    def test_rejects_missing_list(self) -> None:
        with pytest.raises(ConfigFault) as exc_info:
            parse_source(PatternSource("bad", {"nope": []}))
        assert exc_info.value.source == "bad"

    def test_one_bad_record_rejects_source(self) -> None:
        with pytest.raises(ConfigFault):
            parse_source(PatternSource("bad", [_record("a"), {"name": "b"}]))


class TestMergePatterns:
    """Tests for merging sources into the active list."""

    def test_sorted_by_priority_descending(self) -> None:
        source = PatternSource("s", [_record("low", 1), _record("high", 9), _record("mid", 5)])
        assert [p.name for p in merge_patterns([source])] == ["high", "mid", "low"]

    def test_equal_priority_keeps_list_order(self) -> None:
        source = PatternSource("s", [_record("first", 5), _record("second", 5)])
        assert [p.name for p in merge_patterns([source])] == ["first", "second"]

    def test_later_source_overrides_by_name(self) -> None:
        base = PatternSource("base", [_record("shared", 1, type="old")])
        custom = PatternSource("custom", [_record("shared", 7, type="new")])
        merged = merge_patterns([base, custom])
        assert len(merged) == 1
        assert merged[0].type == "new"
        assert merged[0].priority == 7

    def test_disabled_patterns_dropped(self) -> None:
        source = PatternSource("s", [_record("on"), _record("off", enabled=False)])
        assert [p.name for p in merge_patterns([source])] == ["on"]

    def test_override_can_disable_builtin(self) -> None:
        custom = PatternSource("custom", [_record("npm-error", enabled=False)])
        merged = merge_patterns([PatternSource("builtin", BUILTIN_PATTERNS), custom])
        assert "npm-error" not in [p.name for p in merged]

    def test_missing_priority_gets_default(self) -> None:
        merged = merge_patterns([PatternSource("s", [_record("x")])], default_priority=4)
        assert merged[0].priority == 4

    def test_invalid_source_skipped(self) -> None:
        good = PatternSource("good", [_record("a")])
        bad = PatternSource("bad", "not a list")
        assert [p.name for p in merge_patterns([good, bad])] == ["a"]


class TestLoadPatterns:
    """Tests for load_patterns."""

    def test_builtins_loaded_by_default(self) -> None:
        names = [p.name for p in load_patterns()]
        assert "npm-error" in names
        assert "python-traceback" in names

    def test_builtins_can_be_disabled(self) -> None:
        settings = PatternSettings(builtin_enabled=False, custom=[_record("only")])
        assert [p.name for p in load_patterns(settings)] == ["only"]

    def test_extra_sources_override_settings(self) -> None:
        settings = PatternSettings(builtin_enabled=False, custom=[_record("x", 1, type="settings")])
        extra = PatternSource("extra", [_record("x", 1, type="extra")])
        assert load_patterns(settings, [extra])[0].type == "extra"
