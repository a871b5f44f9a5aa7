"""Google Gemini provider implementation. Provider B: speed, creative, image."""

from typing import Optional

from contracts import Complexity, TaskType
from .base import LLMProvider, LLMResponse


class GeminiProvider(LLMProvider):
    """Provider for Google Gemini models."""

    priority = 3

    MODELS = {
        "gemini-pro": "gemini-2.5-pro",
        "gemini-flash": "gemini-2.5-flash",
        "gemini-image": "gemini-2.5-flash-image",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_high: str = "gemini-2.5-pro",
        model_low: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google API key.
            model_high: Model used for high-complexity requests.
            model_low: Model used otherwise.
            image_model: Model used for image tasks.
        """
        self.api_key = (api_key or "").strip()
        self.model_high = model_high
        self.model_low = model_low
        self.image_model = image_model
        self._configured = False

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self.model_low

    def _configure(self):
        if not self._configured and self.api_key:
            import google.generativeai as genai
            genai.configure(api_key=self.api_key)
            self._configured = True

    def _resolve_model(self, model: Optional[str]) -> str:
        if model is None:
            return self.default_model
        return self.MODELS.get(model, model)

    def handles(self, task_type: TaskType, complexity: Complexity) -> bool:
        return task_type in (TaskType.SPEED, TaskType.CREATIVE, TaskType.IMAGE)

    def model_for(self, task_type: TaskType, complexity: Complexity) -> str:
        if task_type == TaskType.IMAGE:
            return self.image_model
        return self.model_high if complexity == Complexity.HIGH else self.model_low

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        import google.generativeai as genai

        self._configure()
        resolved_model = self._resolve_model(model)

        # Gemini takes the system prompt on the model, not the request
        gen_model = genai.GenerativeModel(
            model_name=resolved_model,
            system_instruction=system_prompt,
        )

        response = await gen_model.generate_content_async(
            user_message,
            generation_config=genai.types.GenerationConfig(
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )

        # Token counts are not always reported; estimate if missing
        usage = getattr(response, "usage_metadata", None)
        input_tokens = getattr(usage, "prompt_token_count", None) or len(system_prompt + user_message) // 4
        output_tokens = getattr(usage, "candidates_token_count", None) or len(response.text) // 4

        return LLMResponse(
            content=response.text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=resolved_model,
            provider=self.name,
        )

    def is_available(self) -> bool:
        return bool(self.api_key)
