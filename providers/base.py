"""Base LLM provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from contracts import Complexity, TaskType


@dataclass
class LLMResponse:
    """Standardized response from any LLM provider."""
    content: str
    input_tokens: int
    output_tokens: int
    model: str
    provider: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Besides making calls, a provider declares which requests it is suited for
    (`handles`) and which model it would use (`model_for`); the gateway ranks
    candidates by `priority` (higher wins).
    """

    priority: int = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (anthropic, gemini, openai, litellm)."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model for this provider."""
        pass

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            system_prompt: System/instruction prompt
            user_message: User message/query
            model: Model to use (defaults to provider's default)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            LLMResponse with content and token counts
        """
        pass

    def handles(self, task_type: TaskType, complexity: Complexity) -> bool:
        """Whether this provider is a candidate for the request. Universal by default."""
        return True

    def model_for(self, task_type: TaskType, complexity: Complexity) -> str:
        return self.default_model

    def is_available(self) -> bool:
        """Check if this provider is available (API key set, etc.)."""
        return True
