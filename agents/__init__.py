"""Agent implementations for BuildMind.

Each agent is specialized for one stage of the app-building pipeline.
"""

from .base_agent import BaseAgent, TokenUsage
from .url_analyzer import ReferenceUrlAnalyzer, extract_design_patterns, validate_url
from .prompt_expert import PromptExpert, build_fallback_prompt
from .architect import ArchitectAgent, parse_concept, render_concept_markdown, render_schema_markdown
from .image_generation import AssetStorage, ImageGenerator, placeholder_image
from .designer import (
    DEFAULT_DESIGN_SYSTEM,
    DesignerAgent,
    asset_slug,
    create_tailwind_config,
    default_design_system,
    default_image_prompts,
    validate_design_system,
)
from .qa_agent import QAAgent, simple_code_check
from .coder import CoderAgent, parse_generated_files
from .docubot import DocuBot, render_decision

__all__ = [
    # Base
    "BaseAgent",
    "TokenUsage",
    # Prompt optimization
    "PromptExpert",
    "build_fallback_prompt",
    "ReferenceUrlAnalyzer",
    "extract_design_patterns",
    "validate_url",
    # Planning
    "ArchitectAgent",
    "parse_concept",
    "render_concept_markdown",
    "render_schema_markdown",
    # Design
    "DesignerAgent",
    "DEFAULT_DESIGN_SYSTEM",
    "default_design_system",
    "default_image_prompts",
    "validate_design_system",
    "create_tailwind_config",
    "asset_slug",
    "ImageGenerator",
    "AssetStorage",
    "placeholder_image",
    # Code
    "CoderAgent",
    "parse_generated_files",
    "QAAgent",
    "simple_code_check",
    # Documentation
    "DocuBot",
    "render_decision",
]
