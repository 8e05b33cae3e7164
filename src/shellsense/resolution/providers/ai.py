"""AI analysis providers.

The model is reached through an injected ``CompletionClient``; this module
only builds the prompt and parses the structured reply
(EXPLANATION / SOLUTION / SUGGESTIONS sections).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

from shellsense.core.logging import get_logger
from shellsense.detection.models import DetectedError
from shellsense.resolution.models import Resolution, SourceKind
from shellsense.resolution.providers.base import BaseProvider

_logger = get_logger("provider.ai")

_EXPLANATION = re.compile(r"EXPLANATION:\s*([\s\S]*?)(?=SOLUTION:|\Z)", re.IGNORECASE)
_SOLUTION = re.compile(r"SOLUTION:\s*([\s\S]*?)(?=SUGGESTIONS:|\Z)", re.IGNORECASE)
_SUGGESTIONS = re.compile(r"SUGGESTIONS:\s*([\s\S]*)\Z", re.IGNORECASE)
_NUMBERED = re.compile(r"^\d+\.\s*")


class CompletionClient(Protocol):
    """Anything that turns a prompt into model text."""

    async def complete(self, prompt: str) -> str:
        ...


@dataclass
class AiAnalysis:
    explanation: str = ""
    solution: str = ""
    suggestions: list[str] = field(default_factory=list)


def build_prompt(error: DetectedError) -> str:
    details = [f"- Type: {error.type}", f"- Message: {error.message}"]
    if error.file:
        location = f"{error.file}:{error.line}" if error.line else error.file
        details.append(f"- File: {location}")
    if error.stack_trace:
        details.append(f"- Stack Trace:\n{error.stack_trace}")
    if error.context:
        details.append(f"- Context:\n{error.context}")
    info = "\n".join(details)
    return (
        "You are an expert software debugging assistant. Analyze the following error "
        "and provide a detailed, actionable solution.\n\n"
        f"Error Information:\n{info}\n\n"
        "Please provide your response in the following format:\n\n"
        "EXPLANATION:\n[A clear explanation of what caused this error and why it occurred]\n\n"
        "SOLUTION:\n[Specific code or commands to fix this error. If it's code, provide a "
        "complete, working code snippet]\n\n"
        "SUGGESTIONS:\n1. [First preventive measure or best practice]\n"
        "2. [Second preventive measure or best practice]\n"
        "3. [Third preventive measure or best practice]\n\n"
        "Keep the explanation concise but thorough. Make the solution immediately "
        "actionable. Focus on practical suggestions."
    )


def parse_analysis(text: str) -> AiAnalysis:
    """Split a reply into its sections.

    A reply without EXPLANATION or SOLUTION sections becomes the explanation
    as a whole.
    """
    analysis = AiAnalysis()
    explanation = _EXPLANATION.search(text)
    if explanation:
        analysis.explanation = explanation.group(1).strip()
    solution = _SOLUTION.search(text)
    if solution:
        analysis.solution = solution.group(1).strip()
    suggestions = _SUGGESTIONS.search(text)
    if suggestions:
        lines = [line.strip() for line in suggestions.group(1).strip().split("\n")]
        analysis.suggestions = [_NUMBERED.sub("", line) for line in lines if _NUMBERED.match(line)]
    if not analysis.explanation and not analysis.solution:
        analysis.explanation = text.strip()
    return analysis


class AiAnalysisProvider(BaseProvider):
    """Asks a completion client to explain and fix the error.

    Produces one resolution for the analysis itself and one per suggestion.
    """

    def __init__(
        self,
        name: str,
        client: CompletionClient,
        *,
        label: str,
        analysis_confidence: int,
        suggestion_confidence: int,
    ) -> None:
        self._name = name
        self.client = client
        self.label = label
        self.analysis_confidence = analysis_confidence
        self.suggestion_confidence = suggestion_confidence

    @property
    def name(self) -> str:
        return self._name

    async def resolve(self, error: DetectedError) -> list[Resolution]:
        reply = await self.client.complete(build_prompt(error))
        if not reply or not reply.strip():
            _logger.debug("provider.ai.empty_reply", provider=self._name)
            return []
        analysis = parse_analysis(reply)
        resolutions = [Resolution(
            source_kind=SourceKind.AI,
            title=f"{self.label} Analysis",
            description=analysis.explanation,
            code_snippet=analysis.solution or None,
            confidence=self.analysis_confidence,
        )]
        resolutions.extend(
            Resolution(
                source_kind=SourceKind.AI,
                title=f"{self.label} Suggestion {index}",
                description=suggestion,
                confidence=self.suggestion_confidence,
            )
            for index, suggestion in enumerate(analysis.suggestions, start=1)
        )
        return resolutions


def claude_provider(client: CompletionClient) -> AiAnalysisProvider:
    return AiAnalysisProvider(
        "claude", client, label="Claude", analysis_confidence=85, suggestion_confidence=80
    )


def gemini_provider(client: CompletionClient) -> AiAnalysisProvider:
    return AiAnalysisProvider(
        "gemini", client, label="Gemini", analysis_confidence=90, suggestion_confidence=85
    )


__all__ = [
    "AiAnalysis",
    "AiAnalysisProvider",
    "CompletionClient",
    "build_prompt",
    "claude_provider",
    "gemini_provider",
    "parse_analysis",
]
