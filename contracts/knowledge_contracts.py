"""Knowledge store (brain) contracts."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel, Field


class EntryType(str, Enum):
    """Category of a brain entry."""
    CONCEPT = "concept"
    DESIGN = "design"
    DECISION = "decision"
    DOCUMENTATION = "documentation"
    MARKETING = "marketing"


# Entry types that must carry a `source` metadata tag naming the producing agent
SOURCED_ENTRY_TYPES = {EntryType.CONCEPT, EntryType.DESIGN, EntryType.DECISION, EntryType.MARKETING}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KnowledgeEntry(BaseModel):
    """One append-only row in a project's brain."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str = Field(...)
    owner_id: str = Field(default="")
    content: str = Field(...)
    embedding: Optional[List[float]] = Field(None, description="Fixed-dimension vector, absent if not stored")
    entry_type: EntryType = Field(...)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    similarity: Optional[float] = Field(None, description="Set on similarity search results (1 - distance)")

    @property
    def source(self) -> str:
        return str(self.metadata.get("source") or "unknown")

    @property
    def has_placeholder_embedding(self) -> bool:
        return self.metadata.get("embedding_source") == "placeholder"
