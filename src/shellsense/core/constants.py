"""Global constants for ShellSense.

Centralizes the tuned numbers used by detection and ranking so they stay
discoverable and identical across modules.
"""

# =============================================================================
# Stream Processing
# =============================================================================

PASSTHROUGH_BUFFER_MAX_CHARS = 64_000
"""Maximum characters kept from passthrough output for post-hoc analysis."""

TRANSCRIPT_MAX_CHARS = 200_000
"""Maximum characters of session output retained in the transcript."""

STREAM_READ_CHUNK_BYTES = 8192
"""Bytes read from the shell's stdout/stderr per read call."""

CLEAR_LINE = "\r\x1b[K"
"""Carriage return plus erase-to-end-of-line, used to redraw partial lines."""

PROMPT = "$ "
"""Prompt drawn by the session (the shell runs with PS1 set to the same)."""

# =============================================================================
# Session Timing Defaults (seconds)
# =============================================================================

DEBOUNCE_DELAY_SECONDS = 0.5
"""Quiet period after the last output burst before an analysis pass runs."""

NOTIFICATION_DEDUP_SECONDS = 300.0
"""How long an identical (type, message) notification stays suppressed."""

FALLBACK_PROMPT_DELAY_SECONDS = 0.3
"""Delay after a submit with no output before the prompt is restored."""

PROMPT_SETTLE_DELAY_SECONDS = 0.1
"""Quiet period after output before returning to line editing."""

GRACEFUL_TERMINATION_TIMEOUT = 5.0
"""Seconds to wait after SIGTERM before SIGKILL of the shell process group."""

# =============================================================================
# Pattern Defaults
# =============================================================================

PATTERN_DEFAULT_PRIORITY = 5
"""Priority assigned to a pattern record that does not set one."""

PATTERN_DEFAULT_LINES_ABOVE = 1
"""Default context lines captured above a match."""

PATTERN_DEFAULT_LINES_BELOW = 3
"""Default context lines captured below a match."""

PATTERN_DEFAULT_STACK_DEPTH = 10
"""Default maximum frames consumed by stack-trace capture."""

MAX_CONTEXT_LINES = 50
"""Upper bound on the context window size of any match."""

# =============================================================================
# Aggregation
# =============================================================================

GROUPING_MAX_LINE_DISTANCE = 10
"""Maximum line distance for merging a match into the previous error."""

GROUPING_PREFIX_CHARS = 20
"""Prefix length used to decide whether a grouped message is already present."""

GROUPING_MESSAGE_SEPARATOR = " | "
"""Separator used when appending grouped messages."""

DEDUP_MESSAGE_CHARS = 100
"""Message prefix length used in the in-pass dedup key."""

# =============================================================================
# Resolution Dispatch
# =============================================================================

MAX_RESOLUTIONS_PER_ERROR = 10
"""Default cap on resolutions returned for a single error."""

PROVIDER_TIMEOUT_SECONDS = 10.0
"""Default per-provider timeout during dispatch."""

# =============================================================================
# Relevance Scoring
# =============================================================================

RELEVANCE_TYPE_BONUS = 40
"""Points awarded when the error type name appears in the document."""

RELEVANCE_PHRASE_BONUS = 30
"""Points per adjacent keyword pair found verbatim."""

RELEVANCE_KEYWORD_BASE = 15
"""Base points per matched keyword before the rarity multiplier."""

RELEVANCE_KEYWORD_REPEAT = 5
"""Points per extra occurrence of a matched keyword."""

RELEVANCE_KEYWORD_REPEAT_CAP = 3
"""Maximum extra occurrences counted per keyword."""

RELEVANCE_MULTI_KEYWORD_BONUS = 20
"""Points when at least RELEVANCE_MULTI_KEYWORD_MIN keywords match."""

RELEVANCE_MULTI_KEYWORD_MIN = 3
"""Distinct keyword matches required for the multi-keyword bonus."""

RELEVANCE_INDICATOR_BONUS = 10
"""Points per distinct solution indicator phrase present."""

RELEVANCE_SOLUTION_WORD_BONUS = 15
"""Points once if solution, resolution or fix appears."""

RELEVANCE_FILE_LINE_BONUS = 10
"""Points when a path:line reference appears."""

RELEVANCE_SHORT_DOC_PENALTY = 10
"""Points removed for documents shorter than RELEVANCE_SHORT_DOC_CHARS."""

RELEVANCE_SHORT_DOC_CHARS = 500
"""Documents shorter than this are penalized."""

RELEVANCE_INCLUSION_THRESHOLD = 50
"""Minimum relevance score for a document to produce a resolution."""

CONFIDENCE_BASE = 50
"""Base of the raw confidence computed from a relevance score."""

CONFIDENCE_CAP = 95
"""Ceiling for computed confidences."""

CONFIDENCE_SECTION_BONUS = 3
"""Bonus when a document has an explicit solution section."""

SPREAD_TOP = 95
"""Confidence assigned to the top-ranked result by percentile spreading."""

SPREAD_RANGE = 45
"""Confidence span between the top and bottom ranked results."""

SPREAD_KEEP = 5
"""Results kept per provider after spreading."""
