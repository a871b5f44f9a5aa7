"""OpenAI provider implementation. Provider C: universal fallback."""

from typing import Optional

from contracts import Complexity, TaskType
from .base import LLMProvider, LLMResponse


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI models."""

    priority = 2

    MODELS = {
        "gpt-4o": "gpt-4o",
        "gpt-4o-mini": "gpt-4o-mini",
        "gpt-4-turbo": "gpt-4-turbo",
        "o1": "o1",
        "o1-mini": "o1-mini",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_high: str = "gpt-4o",
        model_low: str = "gpt-4o-mini",
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key.
            model_high: Model used for high-complexity requests.
            model_low: Model used otherwise.
        """
        self.api_key = (api_key or "").strip()
        self.model_high = model_high
        self.model_low = model_low
        self._client = None

    @property
    def name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self.model_high

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _resolve_model(self, model: Optional[str]) -> str:
        if model is None:
            return self.default_model
        return self.MODELS.get(model, model)

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

        response = await client.chat.completions.create(
            model=resolved_model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
        )

        return LLMResponse(
            content=response.choices[0].message.content or "",
            input_tokens=response.usage.prompt_tokens,
            output_tokens=response.usage.completion_tokens,
            model=resolved_model,
            provider=self.name,
        )

    def is_available(self) -> bool:
        return bool(self.api_key)
