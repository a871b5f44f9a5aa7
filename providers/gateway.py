"""Model gateway: per-task provider selection and retried calls.

Selection is a static priority policy. Every configured provider that declares
itself suited to the (task type, complexity) pair is a candidate and the one
with the highest priority wins: anthropic > gemini > openai > litellm. It does
not weigh cost or latency.

Calls are retried up to a bound with exponential backoff (base * 2**attempt
seconds, no jitter). All failures are retried the same way; there is no
distinction between client and server errors.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from contracts import Complexity, ModelConfig, ModelResponse, TaskType
from errors import AllAttemptsExhaustedError, NoAvailableModelError, ProviderError

from .base import LLMProvider
from .factory import build_providers

logger = logging.getLogger(__name__)


class ModelGateway:
    """Selects and calls one of several LLM providers."""

    def __init__(
        self,
        providers: Optional[Sequence[LLMProvider]] = None,
        settings=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the gateway.

        Args:
            providers: Explicit providers (tests, custom routing). When omitted they are
                built from settings and rebuilt by refresh().
            settings: Settings instance; defaults to the global settings.
            sleep: Awaitable used for backoff delays.
        """
        if settings is None:
            from config import settings
        self.settings = settings
        self._explicit = providers is not None
        self._providers: List[LLMProvider] = list(providers) if providers is not None else []
        self._sleep = sleep
        if not self._explicit:
            self.refresh()

    def refresh(self) -> None:
        """Rebuild provider clients from settings (after a key change)."""
        if self._explicit:
            return
        self._providers = build_providers(self.settings)
        logger.info("Model gateway providers: %s", [p.name for p in self._providers] or "none")

    @property
    def providers(self) -> Dict[str, LLMProvider]:
        return {p.name: p for p in self._providers}

    def has_any_model(self) -> bool:
        return any(p.is_available() for p in self._providers)

    def select_model(
        self,
        task_type: TaskType,
        complexity: Complexity = Complexity.MEDIUM,
    ) -> Optional[ModelConfig]:
        """Pick the best configured provider for the task, or None."""
        task_type = TaskType(task_type)
        complexity = Complexity(complexity)

        candidates = [
            p for p in self._providers
            if p.is_available() and p.handles(task_type, complexity)
        ]
        if not candidates:
            logger.warning("No available model for task=%s complexity=%s", task_type.value, complexity.value)
            return None

        best = sorted(candidates, key=lambda p: p.priority, reverse=True)[0]
        return ModelConfig(
            provider=best.name,
            model_name=best.model_for(task_type, complexity),
            task_type=task_type,
            complexity=complexity,
        )

    def require_model(
        self,
        task_type: TaskType,
        complexity: Complexity = Complexity.MEDIUM,
        purpose: Optional[str] = None,
    ) -> ModelConfig:
        """Like select_model, but raises NoAvailableModelError instead of returning None."""
        config = self.select_model(task_type, complexity)
        if config is None:
            raise NoAvailableModelError(TaskType(task_type).value, Complexity(complexity).value, purpose)
        return config

    def available_models(self) -> List[ModelConfig]:
        """One config per configured provider, at its default tier."""
        return [
            ModelConfig(
                provider=p.name,
                model_name=p.default_model,
                task_type=TaskType.GENERAL,
                complexity=Complexity.MEDIUM,
            )
            for p in self._providers
            if p.is_available()
        ]

    async def call(
        self,
        config: ModelConfig,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> ModelResponse:
        """Call the configured model with bounded retries.

        Raises:
            AllAttemptsExhaustedError: every attempt failed
        """
        provider = self.providers.get(config.provider)
        if provider is None:
            raise ProviderError(f"Unknown or unconfigured provider: {config.provider}")

        attempts = max_retries if max_retries is not None else self.settings.api_max_retries
        attempts = max(1, attempts)
        system_prompt = system_instruction or self.settings.default_system_instruction
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                response = await asyncio.wait_for(
                    provider.complete(
                        system_prompt=system_prompt,
                        user_message=prompt,
                        model=config.model_name,
                        max_tokens=self.settings.max_output_tokens,
                        temperature=self.settings.temperature,
                    ),
                    timeout=self.settings.api_timeout_seconds,
                )
                return ModelResponse(
                    content=response.content,
                    model_name=response.model,
                    provider=response.provider,
                    tokens_used=response.total_tokens,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    "Attempt %d/%d on %s/%s failed: %s",
                    attempt + 1, attempts, config.provider, config.model_name, e,
                )
                if attempt < attempts - 1:
                    await self._sleep(self.settings.retry_base_delay_seconds * (2 ** attempt))

        raise AllAttemptsExhaustedError(attempts, last_error)

    async def complete(
        self,
        task_type: TaskType,
        complexity: Complexity,
        prompt: str,
        system_instruction: Optional[str] = None,
        purpose: Optional[str] = None,
    ) -> ModelResponse:
        """Select (or raise NoAvailableModelError) and call in one step."""
        config = self.require_model(task_type, complexity, purpose)
        return await self.call(config, prompt, system_instruction)
