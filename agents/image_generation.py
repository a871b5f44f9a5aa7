"""Image generation collaborator and project asset storage.

With a Gemini key the image model is asked for inline image data. Without one,
or when the call fails, a labelled SVG placeholder is produced instead.
"""

import asyncio
import base64
import logging
from html import escape
from pathlib import Path
from typing import List, Optional

from contracts import GeneratedImage, ImagePrompt

logger = logging.getLogger(__name__)


def placeholder_image(prompt: ImagePrompt) -> GeneratedImage:
    """SVG placeholder labelled with the use case, as a base64 data URL."""
    width, height = prompt.size()
    svg = (
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">'
        '<rect width="100%" height="100%" fill="#020408"/>'
        '<text x="50%" y="50%" font-family="Arial" font-size="24" fill="#0EA5E9" '
        f'text-anchor="middle" dominant-baseline="middle">{escape(prompt.use_case)}</text>'
        '<text x="50%" y="60%" font-family="Arial" font-size="14" fill="#6B7280" '
        f'text-anchor="middle" dominant-baseline="middle">{escape(prompt.description[:50])}...</text>'
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return GeneratedImage(
        url=f"data:image/svg+xml;base64,{encoded}",
        prompt=prompt.description,
        use_case=prompt.use_case,
        dimensions=prompt.dimensions,
        placeholder=True,
    )


def decode_data_url(url: str) -> Optional[tuple]:
    """Split a base64 data URL into (mime_type, bytes); None if it is not one."""
    if not url.startswith("data:") or ";base64," not in url:
        return None
    header, payload = url.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0]
    try:
        return mime_type, base64.b64decode(payload)
    except ValueError:
        return None


class ImageGenerator:
    """Generates images through Gemini, or placeholders."""

    def __init__(self, api_key: Optional[str] = None, model: str = "gemini-2.5-flash-image", pause_seconds: float = 0.5):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.pause_seconds = pause_seconds
        self._configured = False

    @classmethod
    def from_settings(cls, settings=None) -> "ImageGenerator":
        if settings is None:
            from config import settings
        return cls(api_key=settings.gemini_api_key, model=settings.gemini_image_model)

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _gemini_image(self, prompt: ImagePrompt) -> Optional[GeneratedImage]:
        import google.generativeai as genai

        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True

        full_prompt = f"{prompt.description}, {prompt.style}, {prompt.dimensions}"
        response = await genai.GenerativeModel(self.model).generate_content_async(full_prompt)
        for candidate in getattr(response, "candidates", None) or []:
            for part in getattr(candidate.content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and getattr(inline, "data", None):
                    data = inline.data
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    encoded = base64.b64encode(data).decode("ascii")
                    return GeneratedImage(
                        url=f"data:{inline.mime_type or 'image/png'};base64,{encoded}",
                        prompt=prompt.description,
                        use_case=prompt.use_case,
                        dimensions=prompt.dimensions,
                    )
        return None

    async def generate(self, prompt: ImagePrompt) -> GeneratedImage:
        if not self.is_available():
            logger.info("No image provider configured, using placeholder for %s", prompt.use_case)
            return placeholder_image(prompt)
        try:
            image = await self._gemini_image(prompt)
            if image is not None:
                return image
            logger.warning("Image model returned no image data for %s", prompt.use_case)
        except Exception as e:
            logger.warning("Image generation failed for %s: %s", prompt.use_case, e)
        return placeholder_image(prompt)

    async def generate_batch(self, prompts: List[ImagePrompt]) -> List[GeneratedImage]:
        """Generate sequentially, pausing between provider calls."""
        images = []
        for i, prompt in enumerate(prompts):
            images.append(await self.generate(prompt))
            if self.is_available() and self.pause_seconds > 0 and i < len(prompts) - 1:
                await asyncio.sleep(self.pause_seconds)
        return images


class AssetStorage:
    """Writes generated images to <base_dir>/<project_id>/<file_name>."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    async def save(self, image: GeneratedImage, project_id: str, file_name: str) -> Optional[str]:
        """Persist one image; returns its path, or None on failure.

        Names that resolve outside <base_dir>/<project_id> are refused.
        """
        decoded = decode_data_url(image.url)
        if decoded is None:
            logger.error("Cannot store %s: not a base64 data URL", file_name)
            return None
        _, payload = decoded
        base = self.base_dir.resolve()
        project_dir = (base / project_id).resolve()
        target = (project_dir / file_name).resolve()
        if project_dir == base or not project_dir.is_relative_to(base) or target.parent != project_dir:
            logger.error("Refusing to store asset outside %s: %s/%s", base, project_id, file_name)
            return None
        try:
            await asyncio.to_thread(self._write, target, payload)
        except OSError as e:
            logger.error("Failed to store asset %s: %s", target, e)
            return None
        return str(target)

    @staticmethod
    def _write(target: Path, payload: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
