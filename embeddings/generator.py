"""Embedding generation with a provider fallback chain.

OpenAI is tried first, then Gemini. If neither is configured or both fail, a
deterministic placeholder vector is derived from a string hash. Placeholders
are marked with source="placeholder" so stored entries stay auditable.
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER_SOURCE = "placeholder"


@dataclass(frozen=True)
class Embedding:
    """A vector plus the provider that produced it (openai, gemini, placeholder)."""
    vector: List[float]
    source: str

    @property
    def is_placeholder(self) -> bool:
        return self.source == PLACEHOLDER_SOURCE


def string_hash(text: str) -> int:
    """31-multiplier rolling hash, wrapped to a signed 32-bit integer."""
    h = 0
    for char in text:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def placeholder_embedding(text: str, dimension: int = 1536) -> List[float]:
    """Deterministic pseudo-embedding: sin((hash + i) * 0.0001) * 0.5."""
    h = string_hash(text)
    return [math.sin((h + i) * 0.0001) * 0.5 for i in range(dimension)]


def fit_dimension(vector: List[float], dimension: int) -> List[float]:
    """Pad with zeros or truncate to the store's fixed dimension."""
    if len(vector) >= dimension:
        return list(vector[:dimension])
    return list(vector) + [0.0] * (dimension - len(vector))


def to_pg_vector(vector: List[float]) -> str:
    """Serialize to the pgvector literal format: [0.1,0.2,...]."""
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"


def from_pg_vector(literal: str) -> List[float]:
    """Parse a pgvector literal; returns [] if it cannot be parsed."""
    try:
        values = json.loads(literal)
    except (TypeError, ValueError) as e:
        logger.warning("Could not parse pgvector literal: %s", e)
        return []
    if not isinstance(values, list):
        return []
    return [float(v) for v in values]


def cosine_similarity(a: List[float], b: List[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either is zero or lengths differ."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class EmbeddingGenerator:
    """Generates embeddings via OpenAI, then Gemini, then a placeholder."""

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        openai_model: str = "text-embedding-3-small",
        gemini_model: str = "models/text-embedding-004",
        dimension: int = 1536,
    ):
        self.openai_api_key = (openai_api_key or "").strip()
        self.gemini_api_key = (gemini_api_key or "").strip()
        self.openai_model = openai_model
        self.gemini_model = gemini_model
        self.dimension = dimension
        self._openai_client = None
        self._gemini_configured = False

    @classmethod
    def from_settings(cls, settings=None) -> "EmbeddingGenerator":
        if settings is None:
            from config import settings
        return cls(
            openai_api_key=settings.openai_api_key,
            gemini_api_key=settings.gemini_api_key,
            openai_model=settings.openai_embedding_model,
            gemini_model=settings.gemini_embedding_model,
            dimension=settings.embedding_dimension,
        )

    def _get_openai_client(self):
        if self._openai_client is None:
            from openai import AsyncOpenAI
            self._openai_client = AsyncOpenAI(api_key=self.openai_api_key)
        return self._openai_client

    async def _openai_embedding(self, text: str) -> List[float]:
        client = self._get_openai_client()
        response = await client.embeddings.create(
            model=self.openai_model,
            input=text,
            dimensions=self.dimension,
        )
        return list(response.data[0].embedding)

    async def _gemini_embedding(self, text: str) -> List[float]:
        import google.generativeai as genai

        if not self._gemini_configured:
            genai.configure(api_key=self.gemini_api_key)
            self._gemini_configured = True

        # The SDK call is blocking; keep it off the event loop
        result = await asyncio.to_thread(genai.embed_content, model=self.gemini_model, content=text)
        values = result.get("embedding") if isinstance(result, dict) else getattr(result, "embedding", None)
        if not values:
            raise ValueError("Gemini returned an empty embedding")
        return fit_dimension(list(values), self.dimension)

    async def generate(self, text: str) -> Embedding:
        """Embed one text. Never raises; degrades to the placeholder."""
        if self.openai_api_key:
            try:
                return Embedding(await self._openai_embedding(text), "openai")
            except Exception as e:
                logger.warning("OpenAI embedding failed, trying Gemini: %s", e)

        if self.gemini_api_key:
            try:
                return Embedding(await self._gemini_embedding(text), "gemini")
            except Exception as e:
                logger.warning("Gemini embedding failed: %s", e)

        logger.warning("No embedding API available, using placeholder embedding")
        return Embedding(placeholder_embedding(text, self.dimension), PLACEHOLDER_SOURCE)

    async def generate_batch(
        self,
        texts: List[str],
        batch_size: int = 10,
        pause_seconds: float = 0.1,
    ) -> List[Embedding]:
        """Embed texts in concurrent batches, pausing between batches."""
        embeddings: List[Embedding] = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i:i + batch_size]
            embeddings.extend(await asyncio.gather(*(self.generate(t) for t in batch)))
            if i + batch_size < len(texts) and pause_seconds > 0:
                await asyncio.sleep(pause_seconds)
        return embeddings
