"""Exception hierarchy for ShellSense.

All faults inherit from ShellSenseError so callers can catch broadly or
narrowly. Each fault carries the identifiers needed to log it without
extra lookups: the session id, the pattern name, the provider name or the
configuration source.
"""

from __future__ import annotations


class ShellSenseError(Exception):
    """Base exception for all ShellSense errors."""


class StreamFault(ShellSenseError):
    """Raised when the shell channel is gone.

    Examples: the child exited, or a write hit a closed stdin pipe.
    """

    def __init__(self, message: str, *, session_id: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id
        self.exit_code = exit_code


class PatternFault(ShellSenseError):
    """Raised when an error pattern cannot be compiled or validated."""

    def __init__(self, message: str, *, pattern_name: str, regex: str | None = None) -> None:
        super().__init__(message)
        self.pattern_name = pattern_name
        self.regex = regex


class ProviderFault(ShellSenseError):
    """Raised when a resolution provider fails or times out."""

    def __init__(
        self,
        message: str,
        *,
        provider_name: str,
        cause: BaseException | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider_name = provider_name
        self.cause = cause
        self.timed_out = timed_out


class ConfigFault(ShellSenseError):
    """Raised when a configuration or pattern source is unusable."""

    def __init__(self, message: str, *, source: str) -> None:
        super().__init__(message)
        self.source = source


__all__ = [
    "ConfigFault",
    "PatternFault",
    "ProviderFault",
    "ShellSenseError",
    "StreamFault",
]
