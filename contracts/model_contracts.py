"""Model gateway contracts: task routing and normalized responses."""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class TaskType(str, Enum):
    """Kind of work a model call performs; drives provider specialisation."""
    REASONING = "reasoning"
    SPEED = "speed"
    CODING = "coding"
    CREATIVE = "creative"
    IMAGE = "image"
    GENERAL = "general"


class Complexity(str, Enum):
    """Requested model tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ModelConfig(BaseModel):
    """A provider/model pair chosen for one call. Only built for configured providers."""
    provider: str = Field(..., description="Provider name: anthropic, gemini, openai, litellm")
    model_name: str = Field(..., description="Vendor model identifier")
    task_type: TaskType = Field(...)
    complexity: Complexity = Field(default=Complexity.MEDIUM)

    model_config = {"frozen": True, "protected_namespaces": ()}


class ModelResponse(BaseModel):
    """Normalized result of one gateway call."""
    content: str = Field(..., description="Text returned by the model")
    model_name: str = Field(...)
    provider: str = Field(...)
    tokens_used: Optional[int] = Field(None, description="Input + output tokens, when reported")

    model_config = {"frozen": True, "protected_namespaces": ()}
