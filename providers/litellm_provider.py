"""LiteLLM-backed provider. Provider D: lowest-priority universal fallback (Deepseek by default)."""

from typing import Optional

from .base import LLMProvider, LLMResponse


class LiteLLMProvider(LLMProvider):
    """Delegates to litellm.acompletion() for any LiteLLM-routable model."""

    priority = 1

    def __init__(self, default_model: str, api_key: Optional[str] = None, metadata: Optional[dict] = None):
        """Initialize with the LiteLLM model string to use by default.

        Args:
            default_model: LiteLLM model string (e.g. deepseek/deepseek-chat).
            api_key: Key for the routed vendor; empty means the provider is not configured.
            metadata: Optional dict passed to litellm (e.g. agent) for callbacks.
        """
        self._default_model = default_model
        self.api_key = (api_key or "").strip()
        self._metadata = metadata or {}

    @property
    def name(self) -> str:
        return "litellm"

    @property
    def default_model(self) -> str:
        return self._default_model

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        import litellm

        resolved_model = model or self._default_model
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        kwargs = {
            "model": resolved_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "api_key": self.api_key,
            "metadata": {**self._metadata},
        }
        response = await litellm.acompletion(**kwargs)

        content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        model_id = getattr(response, "model", None) or resolved_model

        return LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model_id,
            provider=self.name,
        )

    def is_available(self) -> bool:
        return bool(self.api_key and self._default_model)
