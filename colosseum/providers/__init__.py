"""Provider registry: config "sdk" value -> AIProvider class."""

import logging

from config.config_loader import AppConfig
from colosseum.providers.anthropic import AnthropicProvider
from colosseum.providers.base import AIProvider, ProviderError
from colosseum.providers.gemini import GeminiProvider
from colosseum.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "google-genai": GeminiProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def build_provider(config: AppConfig, name: str | None = None) -> AIProvider:
    """Instantiate the named provider (default: the configured generator).

    Raises:
        ProviderError: If the provider is unknown or has no API key.
    """
    name = name or config.generator
    model_cfg = config.models.get(name)
    if model_cfg is None:
        raise ProviderError(name, "No model configured under this name")
    if model_cfg.sdk not in PROVIDER_CLASSES:
        raise ProviderError(name, f"Unknown sdk '{model_cfg.sdk}'")
    return PROVIDER_CLASSES[model_cfg.sdk](model_cfg)


def build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build every provider that has an API key. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        try:
            providers[name] = build_provider(config, name)
        except Exception as exc:
            logger.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers
