"""Anthropic (Claude) provider implementation. Provider A: reasoning, coding, high complexity."""

from typing import Optional

from contracts import Complexity, TaskType
from .base import LLMProvider, LLMResponse


class AnthropicProvider(LLMProvider):
    """Provider for Anthropic Claude models."""

    priority = 4

    MODELS = {
        "claude-sonnet": "claude-sonnet-4-20250514",
        "claude-opus": "claude-opus-4-20250514",
        "claude-haiku": "claude-3-5-haiku-20241022",
        "sonnet": "claude-sonnet-4-20250514",
        "opus": "claude-opus-4-20250514",
        "haiku": "claude-3-5-haiku-20241022",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_high: str = "claude-sonnet-4-20250514",
        model_low: str = "claude-3-5-haiku-20241022",
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key.
            model_high: Model used for high-complexity requests.
            model_low: Model used otherwise.
        """
        self.api_key = (api_key or "").strip()
        self.model_high = model_high
        self.model_low = model_low
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self.model_high

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    def _resolve_model(self, model: Optional[str]) -> str:
        """Resolve model alias to full model name."""
        if model is None:
            return self.default_model
        return self.MODELS.get(model, model)

    def handles(self, task_type: TaskType, complexity: Complexity) -> bool:
        return task_type in (TaskType.REASONING, TaskType.CODING) or complexity == Complexity.HIGH

    def model_for(self, task_type: TaskType, complexity: Complexity) -> str:
        return self.model_high if complexity == Complexity.HIGH else self.model_low

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        client = self._get_client()
        resolved_model = self._resolve_model(model)

        response = await client.messages.create(
            model=resolved_model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
        )

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )

        return LLMResponse(
            content=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=resolved_model,
            provider=self.name,
        )

    def is_available(self) -> bool:
        return bool(self.api_key)
