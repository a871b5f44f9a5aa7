"""Storage backends for the knowledge store.

A backend persists entries and answers two queries: a vector similarity match
(`similarity = 1 - cosine distance`, strictly above the threshold, best first)
and a case-insensitive substring search ordered by recency.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from contracts import EntryType, KnowledgeEntry
from embeddings import cosine_similarity, from_pg_vector, to_pg_vector

logger = logging.getLogger(__name__)


class KnowledgeBackend(ABC):
    """Append-only entry table plus similarity and text search."""

    @abstractmethod
    async def insert(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        """Persist a new entry and return it as stored."""
        pass

    @abstractmethod
    async def match_entries(
        self,
        project_id: str,
        query_embedding: List[float],
        threshold: float,
        limit: int,
    ) -> List[KnowledgeEntry]:
        """Entries of the project ordered by ascending vector distance."""
        pass

    @abstractmethod
    async def text_search(self, project_id: str, query: str, limit: int) -> List[KnowledgeEntry]:
        """Entries whose content contains `query` (case-insensitive), newest first."""
        pass

    @abstractmethod
    async def list_entries(
        self,
        project_id: str,
        entry_type: Optional[EntryType] = None,
    ) -> List[KnowledgeEntry]:
        """All entries of the project, newest first."""
        pass


class InMemoryKnowledgeBackend(KnowledgeBackend):
    """Process-local backend; similarity is computed in Python."""

    def __init__(self):
        self._entries: List[KnowledgeEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    async def insert(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        self._entries.append(entry)
        return entry

    def _project_entries(self, project_id: str) -> List[KnowledgeEntry]:
        return [e for e in self._entries if e.project_id == project_id]

    async def match_entries(
        self,
        project_id: str,
        query_embedding: List[float],
        threshold: float,
        limit: int,
    ) -> List[KnowledgeEntry]:
        scored = []
        for entry in self._project_entries(project_id):
            if not entry.embedding:
                continue
            similarity = cosine_similarity(entry.embedding, query_embedding)
            if similarity > threshold:
                scored.append((similarity, entry))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [entry.model_copy(update={"similarity": sim}) for sim, entry in scored[:limit]]

    async def text_search(self, project_id: str, query: str, limit: int) -> List[KnowledgeEntry]:
        needle = query.lower()
        hits = [e for e in self._project_entries(project_id) if needle in e.content.lower()]
        hits.sort(key=lambda e: e.created_at, reverse=True)
        return hits[:limit]

    async def list_entries(
        self,
        project_id: str,
        entry_type: Optional[EntryType] = None,
    ) -> List[KnowledgeEntry]:
        entries = self._project_entries(project_id)
        if entry_type is not None:
            entries = [e for e in entries if e.entry_type == EntryType(entry_type)]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)


class SupabaseKnowledgeBackend(KnowledgeBackend):
    """Supabase (PostgREST) backend over HTTP.

    Uses the `project_brain` table and the `match_brain_entries` RPC.
    Requests are blocking, so each runs in a worker thread.
    """

    TABLE = "project_brain"
    MATCH_RPC = "match_brain_entries"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        from config import settings

        self.base_url = (url or settings.supabase_url).rstrip("/")
        self.api_key = api_key or settings.supabase_key
        self.timeout = timeout if timeout is not None else settings.supabase_timeout_seconds

    def is_available(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> Any:
        import requests

        headers = self._headers()
        headers.update(kwargs.pop("headers", {}))
        r = requests.request(
            method,
            f"{self.base_url}/rest/v1/{path}",
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    @staticmethod
    def _to_row(entry: KnowledgeEntry) -> Dict[str, Any]:
        row = {
            "id": entry.id,
            "project_id": entry.project_id,
            "user_id": entry.owner_id,
            "content": entry.content,
            "entry_type": entry.entry_type.value,
            "metadata": entry.metadata,
            "created_at": entry.created_at.isoformat(),
        }
        if entry.embedding is not None:
            row["embedding"] = to_pg_vector(entry.embedding)
        return row

    @staticmethod
    def _from_row(row: Dict[str, Any]) -> KnowledgeEntry:
        embedding = row.get("embedding")
        if isinstance(embedding, str):
            embedding = from_pg_vector(embedding)
        try:
            entry_type = EntryType(row.get("entry_type"))
        except ValueError:
            entry_type = EntryType.DOCUMENTATION
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        data = {
            "id": str(row.get("id")),
            "project_id": str(row.get("project_id")),
            "owner_id": str(row.get("user_id") or ""),
            "content": row.get("content") or "",
            "embedding": embedding or None,
            "entry_type": entry_type,
            "metadata": row.get("metadata") or {},
            "similarity": row.get("similarity"),
        }
        if created_at is not None:
            data["created_at"] = created_at
        return KnowledgeEntry(**data)

    async def insert(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        rows = await asyncio.to_thread(
            self._request,
            "POST",
            self.TABLE,
            json=self._to_row(entry),
            headers={"Prefer": "return=representation"},
        )
        if isinstance(rows, list) and rows:
            return self._from_row(rows[0])
        return entry

    async def match_entries(
        self,
        project_id: str,
        query_embedding: List[float],
        threshold: float,
        limit: int,
    ) -> List[KnowledgeEntry]:
        rows = await asyncio.to_thread(
            self._request,
            "POST",
            f"rpc/{self.MATCH_RPC}",
            json={
                "project_id": project_id,
                "query_embedding": to_pg_vector(query_embedding),
                "match_threshold": threshold,
                "match_count": limit,
            },
        )
        return [self._from_row(row) for row in rows or []]

    async def text_search(self, project_id: str, query: str, limit: int) -> List[KnowledgeEntry]:
        rows = await asyncio.to_thread(
            self._request,
            "GET",
            self.TABLE,
            params={
                "select": "*",
                "project_id": f"eq.{project_id}",
                "content": f"ilike.*{query}*",
                "order": "created_at.desc",
                "limit": str(limit),
            },
        )
        return [self._from_row(row) for row in rows or []]

    async def list_entries(
        self,
        project_id: str,
        entry_type: Optional[EntryType] = None,
    ) -> List[KnowledgeEntry]:
        params = {
            "select": "*",
            "project_id": f"eq.{project_id}",
            "order": "created_at.desc",
        }
        if entry_type is not None:
            params["entry_type"] = f"eq.{EntryType(entry_type).value}"
        rows = await asyncio.to_thread(self._request, "GET", self.TABLE, params=params)
        return [self._from_row(row) for row in rows or []]
