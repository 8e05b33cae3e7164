"""Error detection: patterns, matching, aggregation and notification dedup."""

from shellsense.detection.aggregator import ErrorAggregator, split_lines
from shellsense.detection.matcher import PatternMatch, PatternMatcher, is_trace_frame
from shellsense.detection.models import (
    ContextWindow,
    DetectedError,
    ErrorPattern,
    FieldExtractor,
)
from shellsense.detection.notifications import NotificationDeduper
from shellsense.detection.patterns import (
    BUILTIN_PATTERNS,
    PatternSource,
    load_patterns,
    merge_patterns,
    parse_source,
)

__all__ = [
    "BUILTIN_PATTERNS",
    "ContextWindow",
    "DetectedError",
    "ErrorAggregator",
    "ErrorPattern",
    "FieldExtractor",
    "NotificationDeduper",
    "PatternMatch",
    "PatternMatcher",
    "PatternSource",
    "is_trace_frame",
    "load_patterns",
    "merge_patterns",
    "parse_source",
    "split_lines",
]
