"""Factory for creating extraction providers based on configuration.

Implements Factory Pattern for provider selection with registry pattern for extensibility.

Based on:
- Factory Pattern: https://refactoring.guru/design-patterns/factory-method/python
- Registry Pattern: Python Cookbook 3rd Edition, Recipe 9.22
"""

import logging

from snaptosheet.extraction.base import ExtractionProvider
from snaptosheet.extraction.heuristic_provider import HeuristicExtractionProvider
from snaptosheet.extraction.openrouter_provider import OpenRouterExtractionProvider
from snaptosheet.shared.config import Settings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of available extraction providers.

    Maintains a mapping of provider names to their implementation classes.
    Supports runtime registration of new providers.
    """

    _providers: dict[str, type[ExtractionProvider]] = {
        "openrouter": OpenRouterExtractionProvider,
        "heuristic": HeuristicExtractionProvider,
    }

    @classmethod
    def register(cls, name: str, provider_class: type[ExtractionProvider]) -> None:
        """Register a new provider.

        Args:
            name: Provider identifier (must match Settings.extraction_provider)
            provider_class: Provider class implementing ExtractionProvider interface
        """
        cls._providers[name] = provider_class
        logger.info(f"Registered extraction provider: {name}")

    @classmethod
    def get_provider_class(cls, name: str) -> type[ExtractionProvider]:
        """Get provider class by name.

        Raises:
            ValueError: If provider not found in registry
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Unknown extraction provider: '{name}'. " f"Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def list_providers(cls) -> list[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())


def create_extraction_service(
    settings: Settings, provider_name: str | None = None
) -> ExtractionProvider:
    """Create the extraction provider named in configuration.

    Logs a warning if the provider is not available (e.g. no server-side key).

    Args:
        settings: Application settings with extraction_provider field
        provider_name: Explicit provider, overriding settings.extraction_provider

    Returns:
        Configured extraction provider instance

    Raises:
        ValueError: If the provider is unknown

    Example:
        >>> settings = Settings(extraction_provider="heuristic")
        >>> provider = create_extraction_service(settings)
        >>> result = provider.extract_invoice_fields(ExtractionRequest(ocr_text="..."))
    """
    name = provider_name or settings.extraction_provider
    provider = ProviderRegistry.get_provider_class(name)(settings)

    if not provider.is_available():
        logger.warning(
            f"Extraction provider '{name}' is not fully available. "
            f"Requests must supply their own API key."
        )

    logger.info(f"Created extraction provider: {name}")
    return provider
