"""Base agent class that all specialized agents inherit from.

Every agent:
- Asks the model gateway for a model suited to each call (task type + complexity)
- Calls it with a role-specific system instruction
- Parses the response with the structured-output helpers, falling back to defaults
- Tracks token usage
"""

import logging
from typing import Optional

from pydantic import BaseModel

from contracts import Complexity, ModelConfig, ModelResponse, TaskType
from providers import ModelGateway

logger = logging.getLogger(__name__)


class TokenUsage(BaseModel):
    """Token usage accumulated over an agent's calls."""
    calls: int = 0
    tokens: int = 0

    def add(self, response: ModelResponse) -> None:
        self.calls += 1
        self.tokens += response.tokens_used or 0


class BaseAgent:
    """Base class for all BuildMind agents.

    Agents hold no per-request state; everything a call needs is passed in.
    """

    ROLE = "agent"
    SYSTEM_INSTRUCTION = "You are a helpful AI assistant."

    def __init__(self, gateway: ModelGateway):
        """Initialize the agent.

        Args:
            gateway: Model gateway used for every model call
        """
        self.gateway = gateway
        self.usage = TokenUsage()

    @property
    def role(self) -> str:
        return self.ROLE

    def _select(self, task_type: TaskType, complexity: Complexity) -> Optional[ModelConfig]:
        return self.gateway.select_model(task_type, complexity)

    async def _call(
        self,
        config: ModelConfig,
        prompt: str,
        system_instruction: Optional[str] = None,
    ) -> ModelResponse:
        response = await self.gateway.call(config, prompt, system_instruction or self.SYSTEM_INSTRUCTION)
        self.usage.add(response)
        logger.debug("%s: %s/%s returned %d chars", self.role, response.provider, response.model_name, len(response.content))
        return response

    async def _complete(
        self,
        task_type: TaskType,
        complexity: Complexity,
        prompt: str,
        system_instruction: Optional[str] = None,
        purpose: Optional[str] = None,
    ) -> ModelResponse:
        """Select a model (raising NoAvailableModelError if none) and call it."""
        config = self.gateway.require_model(task_type, complexity, purpose)
        return await self._call(config, prompt, system_instruction)
