"""Registry of resolution providers.

Registration order matters: the dispatcher concatenates results in this
order before sorting, so equal confidences keep provider order.
"""

from __future__ import annotations

from collections.abc import Mapping

from shellsense.core.config import ResolutionConfig
from shellsense.core.logging import get_logger
from shellsense.resolution.providers.base import ResolutionProvider

_logger = get_logger("registry")


class ProviderRegistry:
    """Ordered collection of providers.

    Example:
        registry = ProviderRegistry()
        registry.register(WebSearchProvider())
        web = registry.get_by_name("web")
    """

    def __init__(self) -> None:
        self._providers: list[ResolutionProvider] = []

    def register(self, provider: ResolutionProvider) -> None:
        """Register a provider.

        Raises:
            ValueError: If a provider with the same name is already registered.
        """
        if self.get_by_name(provider.name) is not None:
            raise ValueError(f"Provider already registered: {provider.name}")
        self._providers.append(provider)

    def unregister(self, name: str) -> bool:
        provider = self.get_by_name(name)
        if provider is None:
            return False
        self._providers.remove(provider)
        return True

    def all_providers(self) -> list[ResolutionProvider]:
        return list(self._providers)

    def get_by_name(self, name: str) -> ResolutionProvider | None:
        for provider in self._providers:
            if provider.name == name:
                return provider
        return None

    def names(self) -> list[str]:
        return [p.name for p in self._providers]

    def count(self) -> int:
        return len(self._providers)


def create_default_registry(
    config: ResolutionConfig | None = None,
    completion_clients: Mapping[str, object] | None = None,
) -> ProviderRegistry:
    """Create a registry with the default providers.

    Registers, in order: codebase search, RCA search, AI overview link, web
    search links, known solutions, then the AI analysis providers
    ("gemini", "claude") when enabled in ``config`` and a completion client
    is supplied under that name. Providers listed in
    ``config.disabled_providers`` are left out.
    """
    from shellsense.resolution.providers.ai import claude_provider, gemini_provider
    from shellsense.resolution.providers.codebase import CodebaseProvider
    from shellsense.resolution.providers.known import KnownSolutionsProvider
    from shellsense.resolution.providers.rca import RcaProvider
    from shellsense.resolution.providers.web import AiOverviewProvider, WebSearchProvider

    config = config or ResolutionConfig()
    clients = dict(completion_clients or {})

    candidates: list[ResolutionProvider] = [
        CodebaseProvider(config.search_roots, max_files=config.max_files_scanned),
        RcaProvider(
            config.search_roots,
            config.rca_paths,
            max_results=config.rca_max_results,
            max_files=config.max_files_scanned,
        ),
        AiOverviewProvider(),
        WebSearchProvider(),
        KnownSolutionsProvider(),
    ]

    ai_factories = [
        ("gemini", config.gemini_enabled, gemini_provider),
        ("claude", config.claude_enabled, claude_provider),
    ]
    for name, enabled, factory in ai_factories:
        if not enabled:
            continue
        client = clients.get(name)
        if client is None:
            _logger.warning("registry.ai_client_missing", provider=name)
            continue
        candidates.append(factory(client))  # type: ignore[arg-type]

    registry = ProviderRegistry()
    disabled = set(config.disabled_providers)
    for provider in candidates:
        if provider.name in disabled:
            continue
        registry.register(provider)
    _logger.debug("registry.created", providers=registry.names())
    return registry


__all__ = ["ProviderRegistry", "create_default_registry"]
