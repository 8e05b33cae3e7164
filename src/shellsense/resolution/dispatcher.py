"""Concurrent fan-out of a detected error to every provider.

Each provider runs under its own timeout. A provider that raises or times
out contributes nothing; the others are unaffected. Results are merged in
registration order and then stable-sorted by confidence, so ties keep
provider order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from shellsense.core.constants import MAX_RESOLUTIONS_PER_ERROR, PROVIDER_TIMEOUT_SECONDS
from shellsense.core.errors import ProviderFault
from shellsense.core.logging import get_logger
from shellsense.detection.models import DetectedError
from shellsense.resolution.models import ErrorResolution, Resolution
from shellsense.resolution.providers.base import ResolutionProvider
from shellsense.resolution.registry import ProviderRegistry

_logger = get_logger("dispatcher")


class ResolutionDispatcher:
    """Runs providers for detected errors and merges their results."""

    def __init__(
        self,
        providers: ProviderRegistry | Sequence[ResolutionProvider],
        *,
        max_per_error: int = MAX_RESOLUTIONS_PER_ERROR,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        if isinstance(providers, ProviderRegistry):
            self._providers = providers.all_providers()
        else:
            self._providers = list(providers)
        self.max_per_error = max_per_error
        self.timeout = timeout

    @property
    def providers(self) -> list[ResolutionProvider]:
        return list(self._providers)

    async def resolve(self, error: DetectedError) -> ErrorResolution:
        """Resolve one error with every provider concurrently."""
        results = await asyncio.gather(
            *(self._run_provider(provider, error) for provider in self._providers)
        )
        merged: list[Resolution] = [r for provider_results in results for r in provider_results]
        merged.sort(key=lambda r: r.confidence, reverse=True)
        resolution = ErrorResolution(error=error, resolutions=merged[: self.max_per_error])
        _logger.debug(
            "dispatch.completed",
            error_type=error.type,
            candidates=len(merged),
            kept=len(resolution.resolutions),
        )
        return resolution

    async def resolve_all(self, errors: Sequence[DetectedError]) -> list[ErrorResolution]:
        """Resolve several errors, preserving their order."""
        return list(await asyncio.gather(*(self.resolve(e) for e in errors)))

    async def _run_provider(
        self, provider: ResolutionProvider, error: DetectedError
    ) -> list[Resolution]:
        try:
            results = await asyncio.wait_for(provider.resolve(error), timeout=self.timeout)
            checked = self._check_results(provider, results)
        except TimeoutError as e:
            self._log_fault(ProviderFault(
                f"Timed out after {self.timeout}s",
                provider_name=provider.name,
                cause=e,
                timed_out=True,
            ))
            return []
        except ProviderFault as fault:
            self._log_fault(fault)
            return []
        except Exception as e:
            self._log_fault(ProviderFault(str(e), provider_name=provider.name, cause=e))
            return []
        return checked

    @staticmethod
    def _check_results(provider: ResolutionProvider, results: object) -> list[Resolution]:
        """Validate a provider's return value and tag each result with its name.

        Raises:
            ProviderFault: If the value is not a list of Resolution.
        """
        if not isinstance(results, list):
            raise ProviderFault(
                f"Expected a list of resolutions, got {type(results).__name__}",
                provider_name=provider.name,
            )
        for result in results:
            if not isinstance(result, Resolution):
                raise ProviderFault(
                    f"Expected Resolution, got {type(result).__name__}",
                    provider_name=provider.name,
                )
        for result in results:
            if not result.provider:
                result.provider = provider.name
        return list(results)

    @staticmethod
    def _log_fault(fault: ProviderFault) -> None:
        _logger.warning(
            "provider.failed",
            provider=fault.provider_name,
            timed_out=fault.timed_out,
            error=str(fault),
            error_type=type(fault.cause).__name__ if fault.cause else None,
        )


__all__ = ["ResolutionDispatcher"]
