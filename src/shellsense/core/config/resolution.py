"""Resolution dispatch configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from shellsense.core.constants import (
    MAX_RESOLUTIONS_PER_ERROR,
    PROVIDER_TIMEOUT_SECONDS,
    SPREAD_KEEP,
)


class ResolutionConfig(BaseModel):
    """Configuration for the provider fan-out.

    Only inclusion and exclusion of providers is configurable; the
    dispatcher itself does not know any provider by name.

    Example YAML:
        resolution:
          max_per_error: 8
          provider_timeout_seconds: 5
          disabled_providers: [web]
          search_roots: [.]
    """

    max_per_error: int = Field(
        default=MAX_RESOLUTIONS_PER_ERROR,
        ge=1,
        le=100,
        description="Maximum resolutions kept per detected error",
    )
    provider_timeout_seconds: float = Field(
        default=PROVIDER_TIMEOUT_SECONDS,
        gt=0,
        description="Per-provider timeout. A provider that exceeds it contributes nothing.",
    )
    disabled_providers: list[str] = Field(
        default_factory=list,
        description="Names of default providers to leave out",
    )
    search_roots: list[Path] = Field(
        default_factory=lambda: [Path(".")],
        description="Directories searched by the codebase and RCA providers",
    )
    rca_paths: list[Path] = Field(
        default_factory=list,
        description="Extra RCA knowledge-base directories or files",
    )
    rca_max_results: int = Field(
        default=SPREAD_KEEP,
        ge=1,
        le=50,
        description="Maximum RCA resolutions returned after spreading",
    )
    max_files_scanned: int = Field(
        default=200,
        ge=1,
        description="Cap on files read by a single codebase search",
    )
    claude_enabled: bool = Field(
        default=False,
        description="Enable the Claude-style AI analysis provider",
    )
    gemini_enabled: bool = Field(
        default=False,
        description="Enable the Gemini-style AI analysis provider",
    )
