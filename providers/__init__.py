"""LLM provider abstraction and model gateway."""

from .base import LLMProvider, LLMResponse
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .litellm_provider import LiteLLMProvider
from .factory import build_providers, get_provider, list_providers
from .gateway import ModelGateway

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "LiteLLMProvider",
    "build_providers",
    "get_provider",
    "list_providers",
    "ModelGateway",
]
