"""Factory for creating LLM providers from settings."""

from typing import Dict, List, Optional, Type

from .base import LLMProvider
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider
from .litellm_provider import LiteLLMProvider
from .openai_provider import OpenAIProvider


# Registry of available providers
PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "claude": AnthropicProvider,
    "gemini": GeminiProvider,
    "google": GeminiProvider,
    "openai": OpenAIProvider,
    "gpt": OpenAIProvider,
    "litellm": LiteLLMProvider,
    "deepseek": LiteLLMProvider,
}

ALIASES = {"claude", "google", "gpt", "deepseek"}


def get_provider(provider_name: str, settings=None) -> LLMProvider:
    """Get a provider instance configured from settings.

    Args:
        provider_name: anthropic, gemini, openai or litellm (aliases: claude, google, gpt, deepseek)
        settings: Settings instance; defaults to the global settings

    Returns:
        LLMProvider instance (which may report is_available() == False)

    Examples:
        get_provider("anthropic")
        get_provider("deepseek")  # LiteLLM route to deepseek/deepseek-chat
    """
    if settings is None:
        from config import settings

    provider_key = provider_name.lower()
    if provider_key not in PROVIDERS:
        raise ValueError(
            f"Unknown provider: {provider_name}. "
            f"Available: {list(PROVIDERS.keys())}"
        )

    provider_class = PROVIDERS[provider_key]
    if provider_class is AnthropicProvider:
        return AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model_high=settings.anthropic_model_high,
            model_low=settings.anthropic_model_low,
        )
    if provider_class is GeminiProvider:
        return GeminiProvider(
            api_key=settings.gemini_api_key,
            model_high=settings.gemini_model_high,
            model_low=settings.gemini_model_low,
            image_model=settings.gemini_image_model,
        )
    if provider_class is OpenAIProvider:
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model_high=settings.openai_model_high,
            model_low=settings.openai_model_low,
        )
    return LiteLLMProvider(
        default_model=settings.litellm_model,
        api_key=settings.deepseek_api_key,
    )


def build_providers(settings=None, include_unavailable: bool = False) -> List[LLMProvider]:
    """Build one provider per vendor, in priority order."""
    providers = [
        get_provider(name, settings)
        for name in PROVIDERS
        if name not in ALIASES
    ]
    if not include_unavailable:
        providers = [p for p in providers if p.is_available()]
    return sorted(providers, key=lambda p: p.priority, reverse=True)


def list_providers(settings=None) -> Dict[str, bool]:
    """List all providers and their availability.

    Returns:
        Dict mapping provider name to availability status
    """
    return {p.name: p.is_available() for p in build_providers(settings, include_unavailable=True)}
