"""Knowledge store ("brain"): per-project memory with retrieval for prompts.

`search` tries the vector path first and falls back to substring search on any
failure. `relevant_context` returns NO_CONTEXT_SENTINEL when nothing matches;
callers check it with `has_context` before putting it in a prompt.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from contracts import EntryType, KnowledgeEntry, SOURCED_ENTRY_TYPES
from embeddings import EmbeddingGenerator

from .backends import InMemoryKnowledgeBackend, KnowledgeBackend

logger = logging.getLogger(__name__)

NO_CONTEXT_SENTINEL = "No relevant knowledge found in the brain."
CONTEXT_SEPARATOR = "\n\n---\n\n"


def has_context(text: Optional[str]) -> bool:
    """True if `text` is real retrieved context rather than the sentinel or blank."""
    return bool(text and text.strip()) and text.strip() != NO_CONTEXT_SENTINEL


def format_entry(entry: KnowledgeEntry) -> str:
    return f"[{entry.entry_type.value.upper()}] {entry.content}\nSource: {entry.source}"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnowledgeStore:
    """Saves, searches and formats project knowledge entries."""

    def __init__(
        self,
        backend: Optional[KnowledgeBackend] = None,
        embeddings: Optional[EmbeddingGenerator] = None,
        owner_id: Optional[str] = None,
        similarity_threshold: Optional[float] = None,
        search_limit: Optional[int] = None,
        context_entries: Optional[int] = None,
        settings=None,
    ):
        if settings is None:
            from config import settings
        self.backend = backend if backend is not None else InMemoryKnowledgeBackend()
        self.embeddings = embeddings if embeddings is not None else EmbeddingGenerator.from_settings(settings)
        self.owner_id = owner_id if owner_id is not None else settings.brain_owner_id
        self.similarity_threshold = (
            similarity_threshold if similarity_threshold is not None else settings.brain_similarity_threshold
        )
        self.search_limit = search_limit or settings.brain_search_limit
        self.context_entries = context_entries or settings.brain_context_entries

    async def save(
        self,
        project_id: str,
        content: str,
        entry_type: EntryType,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[KnowledgeEntry]:
        """Embed and persist one entry.

        Returns None if persisting failed, or if a concept, design, decision or
        marketing entry has no `source` tag in its metadata.
        """
        entry_type = EntryType(entry_type)
        metadata = dict(metadata or {})
        if entry_type in SOURCED_ENTRY_TYPES and not metadata.get("source"):
            logger.error("Refusing brain entry of type %s without a source tag", entry_type.value)
            return None

        try:
            embedding = await self.embeddings.generate(content)
            metadata["embedding_source"] = embedding.source
            entry = KnowledgeEntry(
                project_id=project_id,
                owner_id=self.owner_id,
                content=content,
                embedding=embedding.vector,
                entry_type=entry_type,
                metadata=metadata,
            )
            return await self.backend.insert(entry)
        except Exception as e:
            logger.error("Failed to save brain entry for project %s: %s", project_id, e)
            return None

    async def search(self, project_id: str, query: str, limit: Optional[int] = None) -> List[KnowledgeEntry]:
        """Similarity search with a substring fallback. Never raises."""
        limit = limit or self.search_limit
        try:
            query_embedding = await self.embeddings.generate(query)
            return await self.backend.match_entries(
                project_id,
                query_embedding.vector,
                self.similarity_threshold,
                limit,
            )
        except Exception as e:
            logger.warning("Brain similarity search failed, falling back to text search: %s", e)
        return await self._text_search(project_id, query, limit)

    async def _text_search(self, project_id: str, query: str, limit: int) -> List[KnowledgeEntry]:
        try:
            return await self.backend.text_search(project_id, query, limit)
        except Exception as e:
            logger.error("Brain text search failed: %s", e)
            return []

    async def relevant_context(self, project_id: str, query: str, max_entries: Optional[int] = None) -> str:
        """Top entries formatted for a prompt, or NO_CONTEXT_SENTINEL."""
        entries = await self.search(project_id, query, max_entries or self.context_entries)
        if not entries:
            return NO_CONTEXT_SENTINEL
        return CONTEXT_SEPARATOR.join(format_entry(e) for e in entries)

    async def load_entries(self, project_id: str, entry_type: Optional[EntryType] = None) -> List[KnowledgeEntry]:
        """All entries of a project, newest first; [] on failure."""
        try:
            return await self.backend.list_entries(project_id, entry_type)
        except Exception as e:
            logger.error("Failed to load brain entries: %s", e)
            return []

    async def save_concept(self, project_id: str, concept_markdown: str) -> Optional[KnowledgeEntry]:
        return await self.save(project_id, concept_markdown, EntryType.CONCEPT, {
            "source": "architect",
            "timestamp": _timestamp(),
        })

    async def save_marketing(self, project_id: str, marketing_markdown: str) -> Optional[KnowledgeEntry]:
        return await self.save(project_id, marketing_markdown, EntryType.MARKETING, {
            "source": "architect",
            "timestamp": _timestamp(),
        })

    async def save_design_system(self, project_id: str, design_system: Dict[str, Any]) -> Optional[KnowledgeEntry]:
        return await self.save(project_id, json.dumps(design_system), EntryType.DESIGN, {
            "source": "designer",
            "timestamp": _timestamp(),
        })

    async def save_decision(
        self,
        project_id: str,
        decision: str,
        agent: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[KnowledgeEntry]:
        return await self.save(project_id, decision, EntryType.DECISION, {
            "source": "docu_bot",
            "agent": agent,
            "context": context or {},
            "timestamp": _timestamp(),
        })
