"""Prompt Expert: analyzes user intent and produces an optimized build prompt."""

import json
import logging
from typing import Optional

from contracts import (
    Complexity,
    DesignRuleCheck,
    PromptAnalysis,
    PromptContext,
    TaskType,
)
from parsing import parse_json_from_text

from .base_agent import BaseAgent
from .url_analyzer import ReferenceUrlAnalyzer, extract_design_patterns

logger = logging.getLogger(__name__)


ANALYSIS_FIELDS = ["intent", "missingDetails", "designRequirements", "technicalRequirements", "optimizedPrompt"]

HOUSE_DESIGN_RULES = [
    "Must use dark mode (#020408 background)",
    "Must follow the premium Venlo/EU style",
    "Must use glassmorphism",
    "Must use Lucide icons",
    "Must integrate Supabase",
]


def build_fallback_prompt(user_input: str, analysis: Optional[PromptAnalysis] = None) -> str:
    """Templated build prompt used when the model's analysis is unusable."""
    lines = [
        f'Implement a complete React app based on: "{user_input}"',
        "",
        "Technical requirements:",
        "- React 18 with TypeScript",
        "- TailwindCSS for styling",
        "- Lucide React for icons",
        "- Supabase backend (use import.meta.env.VITE_SUPABASE_URL)",
        "- Dark mode design: deep midnight blue (#020408), glassmorphism, thin borders",
        "",
        "Design system:",
        "- Background: #020408",
        "- Surface: #0B0F17",
        "- Accent: #0EA5E9",
        "- Text: #F8FAFC",
        "",
        "IMPORTANT:",
        "- Write the full concept to brain/concept.md",
        "- Write the design system to brain/design.json",
        "- Implement every required React component",
        "- Integrate Supabase for persistence",
    ]
    if analysis and analysis.missing_details:
        lines.append(f"Missing details to fill in: {', '.join(analysis.missing_details)}")
    if analysis and analysis.technical_requirements:
        lines.append(f"Technical requirements: {', '.join(analysis.technical_requirements)}")
    return "\n".join(lines)


class PromptExpert(BaseAgent):
    """Turns a raw user request into an optimized, technically precise prompt."""

    ROLE = "prompt_expert"
    SYSTEM_INSTRUCTION = (
        "You are an expert in prompt engineering and software architecture. "
        "Respond ONLY with valid JSON."
    )

    def __init__(self, gateway, url_analyzer: Optional[ReferenceUrlAnalyzer] = None):
        super().__init__(gateway)
        self.url_analyzer = url_analyzer or ReferenceUrlAnalyzer()

    def _fallback_analysis(self, user_input: str) -> PromptAnalysis:
        return PromptAnalysis(
            intent="App development based on the user request",
            missing_details=["Detailed feature list", "Target audience definition"],
            design_requirements=["Dark Mode", "Venlo Style", "Glassmorphism"],
            technical_requirements=["React 18", "TailwindCSS", "Supabase Integration"],
            optimized_prompt=build_fallback_prompt(user_input),
        )

    async def _reference_section(self, reference_url: Optional[str]) -> str:
        if not reference_url:
            return ""
        analysis = await self.url_analyzer.analyze(reference_url)
        return extract_design_patterns(analysis) if analysis else ""

    def _build_prompt(self, user_input: str, context: PromptContext, reference: str) -> str:
        parts = [
            "You are the Prompt Expert. Analyze and optimize the user's request.",
            "",
            f'User request: "{user_input}"',
            "",
        ]
        if context.design_system:
            parts.append(f"Current design system: {json.dumps(context.design_system)}")
        if context.color_scheme:
            parts.append(f"Color scheme: {context.color_scheme}")
        if context.existing_files:
            parts.append(f"Existing files: {', '.join(context.existing_files)}")
        if reference:
            parts.append(f"\nReference URL analysis:\n{reference}")
        parts.append("""
Produce:
1. Intent: what does the user want to achieve?
2. Missing details: what is needed for a complete implementation?
3. Design requirements: which design rules apply?
4. Technical requirements: which technical details must be added?
5. Optimized prompt: a complete, technically precise prompt for a senior architect

IMPORTANT:
- The design must be "High-End Dark Mode (Venlo Style)"
- Add missing technical details (Supabase DB, React components, Lucide icons)
- Require a concept document at brain/concept.md
- Use import.meta.env.VITE_SUPABASE_URL for Supabase
- Design: deep midnight blue background (#020408), glassmorphism, thin borders

Respond as JSON:
{
  "intent": "...",
  "missingDetails": ["..."],
  "designRequirements": ["..."],
  "technicalRequirements": ["..."],
  "optimizedPrompt": "..."
}""")
        return "\n".join(parts)

    async def optimize(self, user_input: str, context: Optional[PromptContext] = None) -> PromptAnalysis:
        """Analyze the request and return an optimized prompt.

        Raises:
            NoAvailableModelError: no model is configured for reasoning
            AllAttemptsExhaustedError: every model attempt failed
        """
        context = context or PromptContext()
        config = self.gateway.require_model(TaskType.REASONING, Complexity.HIGH, "prompt optimization")
        reference = await self._reference_section(context.reference_url)

        response = await self._call(config, self._build_prompt(user_input, context, reference))

        fallback = self._fallback_analysis(user_input)
        data = parse_json_from_text(response.content, ANALYSIS_FIELDS, fallback.model_dump(by_alias=True))

        for key in ("missingDetails", "designRequirements", "technicalRequirements"):
            if not isinstance(data.get(key), list):
                data[key] = fallback.model_dump(by_alias=True)[key]
        if not isinstance(data.get("intent"), str):
            data["intent"] = fallback.intent

        prompt = data.get("optimizedPrompt")
        data["optimizedPrompt"] = prompt if isinstance(prompt, str) and prompt.strip() else ""

        try:
            analysis = PromptAnalysis.model_validate(data)
        except ValueError as e:
            logger.warning("Prompt analysis did not validate, using fallback: %s", e)
            return fallback

        if not analysis.optimized_prompt.strip():
            analysis = analysis.model_copy(update={"optimized_prompt": build_fallback_prompt(user_input, analysis)})
        return analysis

    async def validate_design_rules(self, prompt: str) -> DesignRuleCheck:
        """Check a prompt against the house design rules. Permissive when no model is available."""
        config = self._select(TaskType.REASONING, Complexity.LOW)
        if config is None:
            return DesignRuleCheck()

        rules = "\n".join(f"{i}. {rule}" for i, rule in enumerate(HOUSE_DESIGN_RULES, start=1))
        validation_prompt = f"""Check this prompt for violations of the design rules:

Prompt: "{prompt}"

Design rules:
{rules}

Respond as JSON:
{{
  "valid": true,
  "violations": ["..."],
  "suggestions": ["..."]
}}"""

        try:
            response = await self._call(
                config,
                validation_prompt,
                "You are a design expert. Respond ONLY with valid JSON.",
            )
        except Exception as e:
            logger.warning("Design rule validation failed: %s", e)
            return DesignRuleCheck()

        data = parse_json_from_text(response.content, ["violations", "suggestions"], {})
        return DesignRuleCheck(
            valid=data["valid"] if isinstance(data.get("valid"), bool) else True,
            violations=[str(v) for v in data.get("violations", [])] if isinstance(data.get("violations"), list) else [],
            suggestions=[str(s) for s in data.get("suggestions", [])] if isinstance(data.get("suggestions"), list) else [],
        )
