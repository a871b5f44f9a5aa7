"""Per-project knowledge store (brain) with similarity retrieval."""

from .backends import InMemoryKnowledgeBackend, KnowledgeBackend, SupabaseKnowledgeBackend
from .store import CONTEXT_SEPARATOR, NO_CONTEXT_SENTINEL, KnowledgeStore, format_entry, has_context

__all__ = [
    "KnowledgeBackend",
    "InMemoryKnowledgeBackend",
    "SupabaseKnowledgeBackend",
    "KnowledgeStore",
    "NO_CONTEXT_SENTINEL",
    "CONTEXT_SEPARATOR",
    "format_entry",
    "has_context",
]
