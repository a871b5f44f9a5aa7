"""Designer agent: design system, image prompts and generated assets."""

import copy
import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

from contracts import (
    BusinessConcept,
    Complexity,
    DesignSystem,
    ImagePrompt,
    SavedAsset,
    TaskType,
)
from parsing import parse_json_array_from_text, parse_json_from_text

from .base_agent import BaseAgent
from .image_generation import AssetStorage, ImageGenerator

logger = logging.getLogger(__name__)


DEFAULT_DESIGN_SYSTEM: Dict[str, Any] = {
    "theme": "NeXify Dark Premium",
    "colors": {
        "primary": "#0EA5E9",
        "secondary": "#94A3B8",
        "background": "#020408",
        "surface": "#0B0F17",
        "text": "#F8FAFC",
        "accent": "#0EA5E9",
        "success": "#10B981",
        "warning": "#F59E0B",
        "error": "#EF4444",
    },
    "typography": {
        "fontFamily": "Inter",
        "fontSize": {
            "xs": "0.75rem",
            "sm": "0.875rem",
            "base": "1rem",
            "lg": "1.125rem",
            "xl": "1.25rem",
            "2xl": "1.5rem",
        },
    },
    "spacing": {
        "xs": "0.25rem",
        "sm": "0.5rem",
        "md": "1rem",
        "lg": "1.5rem",
        "xl": "2rem",
    },
    "borderRadius": {
        "sm": "0.25rem",
        "md": "0.5rem",
        "lg": "0.75rem",
        "xl": "1rem",
    },
    "assets": ["logo.png", "hero-bg.png", "feature-illustration.png"],
}

IMAGE_PROMPT_FIELDS = ["description", "style", "dimensions", "useCase"]

DEFAULT_IMAGE_PROMPTS: List[Dict[str, str]] = [
    {
        "description": "Modern, minimalist logo with geometric shapes, dark background, sky blue accent",
        "style": "Modern, Dark, Premium, Minimalist",
        "dimensions": "512x512",
        "useCase": "logo",
    },
    {
        "description": "Abstract hero background with gradient from dark blue to black, "
                       "glassmorphism effects, subtle tech patterns",
        "style": "Abstract, Dark, Glassmorphism, Tech",
        "dimensions": "1920x1080",
        "useCase": "hero-background",
    },
    {
        "description": "Feature illustration showing modern UI elements, dark theme, premium feel",
        "style": "Illustration, Dark, Modern, Premium",
        "dimensions": "800x600",
        "useCase": "feature-illustration",
    },
]

# snake_case spellings a model might use instead of the JSON keys
_KEY_ALIASES = {"border_radius": "borderRadius", "font_family": "fontFamily", "font_size": "fontSize", "xxl": "2xl"}


def default_design_system() -> DesignSystem:
    return DesignSystem.model_validate(DEFAULT_DESIGN_SYSTEM)


def default_image_prompts() -> List[ImagePrompt]:
    return [ImagePrompt.model_validate(p) for p in DEFAULT_IMAGE_PROMPTS]


def asset_slug(use_case: str) -> str:
    """File-name-safe form of an image use case."""
    return re.sub(r"[^A-Za-z0-9_-]+", "-", use_case or "").strip("-") or "asset"


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _merge_with_defaults(partial: Any, defaults: Any) -> Any:
    """Backfill `partial` from `defaults` leaf by leaf, keeping every present value."""
    if isinstance(defaults, dict):
        if not isinstance(partial, dict):
            return copy.deepcopy(defaults)
        partial = {_KEY_ALIASES.get(k, k): v for k, v in partial.items()}
        merged = {}
        for key, default_value in defaults.items():
            value = partial.get(key)
            merged[key] = copy.deepcopy(default_value) if _is_missing(value) else _merge_with_defaults(value, default_value)
        return merged
    if isinstance(defaults, list):
        return list(partial) if isinstance(partial, list) else copy.deepcopy(defaults)
    if isinstance(defaults, str):
        return partial if isinstance(partial, str) and partial else defaults
    return partial


def validate_design_system(system: Any) -> DesignSystem:
    """Return a fully populated design system.

    Missing or wrongly typed fields, nested ones included, are taken from the
    default system one by one; fields that are present are kept unchanged.
    """
    if isinstance(system, DesignSystem):
        system = system.to_json_dict()
    merged = _merge_with_defaults(system, DEFAULT_DESIGN_SYSTEM)
    merged["assets"] = [str(a) for a in merged["assets"]]
    return DesignSystem.model_validate(merged)


def create_tailwind_config(design_system: DesignSystem) -> str:
    """Render a tailwind.config.js that exposes the design tokens."""
    ds = design_system.to_json_dict()

    def block(values: Dict[str, str], indent: str = "        ") -> str:
        return "\n".join(f"{indent}'{k}': '{v}'," for k, v in values.items())

    return f"""// tailwind.config.js
export default {{
  content: ['./index.html', './src/**/*.{{js,ts,jsx,tsx}}'],
  theme: {{
    extend: {{
      colors: {{
{block(ds['colors'])}
      }},
      fontFamily: {{
        sans: ['{ds['typography']['fontFamily']}', 'sans-serif'],
      }},
      fontSize: {{
{block(ds['typography']['fontSize'])}
      }},
      spacing: {{
{block(ds['spacing'])}
      }},
      borderRadius: {{
{block(ds['borderRadius'])}
      }},
    }},
  }},
  plugins: [],
}};
"""


class DesignerAgent(BaseAgent):
    """Design system creation and asset generation."""

    ROLE = "designer"
    SYSTEM_INSTRUCTION = (
        "You are a design system expert. Create professional, consistent design systems. "
        "Respond ONLY with valid JSON."
    )

    def __init__(
        self,
        gateway,
        image_generator: Optional[ImageGenerator] = None,
        asset_storage: Optional[AssetStorage] = None,
    ):
        super().__init__(gateway)
        self.image_generator = image_generator or ImageGenerator()
        self.asset_storage = asset_storage

    async def create_design_system(self, concept: BusinessConcept) -> DesignSystem:
        """Design system for the concept; the default system when no model is usable."""
        config = self._select(TaskType.CREATIVE, Complexity.MEDIUM)
        if config is None:
            return default_design_system()

        prompt = f"""Create a complete design system for:

Business concept: {concept.summary}
Target audience: {concept.target_audience}
Features: {', '.join(concept.features)}

Requirements:
- Dark mode (background #020408)
- Premium Venlo/EU style
- Glassmorphism effects
- Sky blue accent (#0EA5E9)
- Inter font family

Include a color palette (primary, secondary, background, surface, text, accent, success,
warning, error), typography (fontFamily, fontSize xs/sm/base/lg/xl/2xl), spacing
(xs/sm/md/lg/xl), borderRadius (sm/md/lg/xl) and an asset list.

Respond as JSON:
{json.dumps(DEFAULT_DESIGN_SYSTEM, indent=2)}"""

        try:
            response = await self._call(config, prompt)
        except Exception as e:
            logger.warning("Design system generation failed, using default: %s", e)
            return default_design_system()

        # Partial replies are backfilled per field below.
        data = parse_json_from_text(response.content, [], DEFAULT_DESIGN_SYSTEM)
        return validate_design_system(data)

    def validate_design_system(self, system: Any) -> DesignSystem:
        return validate_design_system(system)

    def create_tailwind_config(self, design_system: DesignSystem) -> str:
        return create_tailwind_config(design_system)

    async def generate_image_prompts(self, design_system: DesignSystem, concept: BusinessConcept) -> List[ImagePrompt]:
        """Prompts for logo, hero and feature assets; the default set on any failure."""
        config = self._select(TaskType.CREATIVE, Complexity.MEDIUM)
        if config is None:
            return default_image_prompts()

        prompt = f"""Create optimized image prompts for asset generation:

Design colors: {json.dumps(design_system.colors.model_dump())}
Business: {concept.summary}
Features: {', '.join(concept.features)}

Create prompts for:
1. Logo
2. Hero image
3. Feature illustrations
4. Icon set

Each prompt needs a detailed description, a style (e.g. "Modern, Dark, Premium,
Glassmorphism"), dimensions and a use case.

Respond as a JSON array:
[
  {{
    "description": "...",
    "style": "...",
    "dimensions": "1920x1080",
    "useCase": "hero-background"
  }}
]"""

        try:
            response = await self._call(
                config,
                prompt,
                "You are a creative director. Write professional image prompts. Respond ONLY with valid JSON.",
            )
        except Exception as e:
            logger.warning("Image prompt generation failed, using defaults: %s", e)
            return default_image_prompts()

        items = parse_json_array_from_text(response.content, IMAGE_PROMPT_FIELDS, DEFAULT_IMAGE_PROMPTS)
        prompts = []
        for item in items:
            try:
                prompts.append(ImagePrompt.model_validate({k: str(item[k]) for k in IMAGE_PROMPT_FIELDS}))
            except ValueError as e:
                logger.warning("Skipping malformed image prompt: %s", e)
        return prompts or default_image_prompts()

    async def generate_images(self, prompts: List[ImagePrompt], project_id: str) -> List[SavedAsset]:
        """Generate and store images. Returns the stored assets; [] on failure."""
        if self.asset_storage is None:
            logger.info("No asset storage configured, skipping image generation")
            return []

        try:
            images = await self.image_generator.generate_batch(prompts)
        except Exception as e:
            logger.error("Image generation failed: %s", e)
            return []

        saved: List[SavedAsset] = []
        stamp = int(time.time() * 1000)
        for image in images:
            extension = "svg" if image.url.startswith("data:image/svg") else "png"
            file_name = f"image_{asset_slug(image.use_case)}_{stamp}.{extension}"
            location = await self.asset_storage.save(image, project_id, file_name)
            if location:
                saved.append(SavedAsset(
                    url=location,
                    use_case=image.use_case,
                    file_name=file_name,
                    placeholder=image.placeholder,
                ))
        return saved
