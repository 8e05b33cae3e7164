"""Shell session configuration models.

Defines how the monitored shell is spawned and the timing of the
debounce, fallback and prompt-settle timers.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from shellsense.core.constants import (
    DEBOUNCE_DELAY_SECONDS,
    FALLBACK_PROMPT_DELAY_SECONDS,
    NOTIFICATION_DEDUP_SECONDS,
    PASSTHROUGH_BUFFER_MAX_CHARS,
    PROMPT_SETTLE_DELAY_SECONDS,
    TRANSCRIPT_MAX_CHARS,
)

DEFAULT_INTERACTIVE_PROGRAMS = ["node", "irb", "ruby", "php -a", "lua", "R", "python", "python3", "python2"]


class SessionConfig(BaseModel):
    """Configuration for one monitored shell session.

    Example YAML:
        session:
          shell: /bin/bash
          debounce_seconds: 0.5
          interactive_programs: [node, python3, irb]
    """

    shell: str = Field(
        default="/bin/sh",
        description="Path of the shell executable to spawn",
    )
    shell_args: list[str] = Field(
        default_factory=list,
        description="Extra arguments passed to the shell",
    )
    working_directory: Path | None = Field(
        default=None,
        description="Working directory for the shell. None uses the current directory.",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables. PS1 and TERM are always overridden.",
    )
    debounce_seconds: float = Field(
        default=DEBOUNCE_DELAY_SECONDS,
        gt=0,
        description="Quiet period after output before an analysis pass runs",
    )
    fallback_prompt_seconds: float = Field(
        default=FALLBACK_PROMPT_DELAY_SECONDS,
        gt=0,
        description="Delay after a submit with no output before the prompt returns",
    )
    prompt_settle_seconds: float = Field(
        default=PROMPT_SETTLE_DELAY_SECONDS,
        gt=0,
        description="Quiet period after output before line editing resumes",
    )
    notification_dedup_seconds: float = Field(
        default=NOTIFICATION_DEDUP_SECONDS,
        ge=0,
        description="How long an identical notification stays suppressed",
    )
    interactive_programs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INTERACTIVE_PROGRAMS),
        description="Commands that switch the session into passthrough mode. "
        "Matched against the exact command or its leading words.",
    )
    interactive_flags: dict[str, list[str]] = Field(
        default_factory=lambda: {"python": ["-i", "-u"], "python3": ["-i", "-u"], "python2": ["-i", "-u"]},
        description="Flags injected when an interactive program runs over a pipe",
    )
    passthrough_buffer_chars: int = Field(
        default=PASSTHROUGH_BUFFER_MAX_CHARS,
        gt=0,
        description="Maximum passthrough output kept for post-hoc analysis",
    )
    transcript_chars: int = Field(
        default=TRANSCRIPT_MAX_CHARS,
        gt=0,
        description="Maximum session output kept in the transcript",
    )
    auto_analyze: bool = Field(
        default=True,
        description="Run analysis passes automatically on output",
    )

    @field_validator("interactive_programs")
    @classmethod
    def _strip_programs(cls, v: list[str]) -> list[str]:
        programs = [p.strip() for p in v if p.strip()]
        return programs

    @model_validator(mode="after")
    def _check_fallback_after_settle(self) -> SessionConfig:
        """The fallback must not fire before output had a chance to settle."""
        if self.fallback_prompt_seconds < self.prompt_settle_seconds:
            raise ValueError(
                "fallback_prompt_seconds must be >= prompt_settle_seconds "
                f"({self.fallback_prompt_seconds} < {self.prompt_settle_seconds})"
            )
        return self
