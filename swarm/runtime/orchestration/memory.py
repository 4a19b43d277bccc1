"""
Conversation Memory - Per-user turn recall with a local fallback store

WHAT: MemoryService protocol, Zep HTTP client, and in-process fallback store
WHERE: swarm/runtime/orchestration/memory.py - memory collaborator
WHO: AgentManager reading recent turns and appending new ones
TIME: Remote calls bounded by ZepConfig.timeout; local calls O(1)

The remote client runs in one of two explicit modes:
- REMOTE: calls go to the Zep collections API
- LOCAL_FALLBACK: entered on the first failed remote call and kept for the
  lifetime of the client; every later call is served locally

``last_served_by`` records which mode answered the latest call so callers
and tests can observe the transition.
"""

from __future__ import annotations

import enum
import logging
import os
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

LOCAL_MEMORY_LIMIT = 20
DEFAULT_ZEP_URL = "https://api.zep.ai/api"


class MemoryMode(str, enum.Enum):
    REMOTE = "remote"
    LOCAL_FALLBACK = "local_fallback"


@runtime_checkable
class MemoryService(Protocol):
    """Abstract interface for per-user conversational memory."""

    async def add_memory(self, user_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        """Append ``{role, content, agent?}`` for ``user_id``."""

    async def get_memory(self, user_id: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        """Return recent ``{role, content}`` turns in collaborator order."""


class LocalMemoryStore:
    """Bounded per-user buffer; oldest turns drop once the cap is reached."""

    def __init__(self, *, max_messages: int = LOCAL_MEMORY_LIMIT) -> None:
        self._max_messages = max_messages
        self._turns: Dict[str, Deque[Dict[str, Any]]] = {}

    def add(self, user_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        buffer = self._turns.setdefault(user_id, deque(maxlen=self._max_messages))
        entry = dict(message)
        entry.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        buffer.append(entry)
        return {"success": True, "message": "Added to local memory fallback"}

    def get(self, user_id: str, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        turns = list(self._turns.get(user_id, ()))
        if limit is not None and limit >= 0:
            turns = turns[-limit:] if limit else []
        return turns

    def search(self, user_id: str, query: str) -> List[Dict[str, Any]]:
        needle = query.lower()
        return [t for t in self._turns.get(user_id, ()) if needle in str(t.get("content", "")).lower()]

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._turns.values())


class InMemoryMemoryService:
    """MemoryService backed only by a LocalMemoryStore."""

    def __init__(self, store: LocalMemoryStore | None = None) -> None:
        self.store = store or LocalMemoryStore()
        self.last_served_by = MemoryMode.LOCAL_FALLBACK

    async def add_memory(self, user_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.add(user_id, message)

    async def get_memory(self, user_id: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        return self.store.get(user_id, limit=limit)

    async def search_memory(self, user_id: str, query: str, *, limit: int = 5) -> List[Dict[str, Any]]:
        return self.store.search(user_id, query)[:limit]


@dataclass(slots=True)
class ZepConfig:
    api_url: str = DEFAULT_ZEP_URL
    api_key: Optional[str] = None
    timeout: float = 10.0
    source: str = "ai-child-education-platform"

    @staticmethod
    def from_env() -> "ZepConfig":
        return ZepConfig(
            api_url=os.environ.get("ZEP_API_URL", DEFAULT_ZEP_URL),
            api_key=os.environ.get("ZEP_API_KEY") or None,
        )


class ZepMemoryService:
    """Zep collections client that degrades to LocalMemoryStore on failure."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        config: ZepConfig | None = None,
        fallback: LocalMemoryStore | None = None,
    ) -> None:
        self.config = config or ZepConfig()
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        self._client = client or httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=headers,
            timeout=self.config.timeout,
        )
        self.fallback = fallback or LocalMemoryStore()
        self.mode = MemoryMode.REMOTE
        self.last_served_by: Optional[MemoryMode] = None
        self._bootstrapped: set[str] = set()

    @staticmethod
    def collection_name(user_id: str) -> str:
        return f"user_{user_id}"

    async def aclose(self) -> None:
        await self._client.aclose()

    def _enter_fallback(self, reason: Exception) -> None:
        if self.mode is MemoryMode.LOCAL_FALLBACK:
            return
        self.mode = MemoryMode.LOCAL_FALLBACK
        logger.warning(f"Zep memory unavailable, switching to local fallback: {reason}")

    # ------------------ bootstrap ------------------
    async def _ensure_collection(self, user_id: str) -> None:
        """GET the user's collection, creating it on 404. Runs once per user."""

        if user_id in self._bootstrapped:
            return
        name = self.collection_name(user_id)
        response = await self._client.get(f"/collections/{name}")
        if response.status_code == 404:
            created = await self._client.post(
                "/collections",
                json={
                    "name": name,
                    "description": f"Memory collection for {name}",
                    "metadata": {"source": self.config.source},
                },
            )
            created.raise_for_status()
        else:
            response.raise_for_status()
        self._bootstrapped.add(user_id)

    # ------------------ operations -----------------
    async def add_memory(self, user_id: str, message: Dict[str, Any]) -> Dict[str, Any]:
        if self.mode is MemoryMode.REMOTE:
            try:
                await self._ensure_collection(user_id)
                response = await self._client.post(
                    f"/collections/{self.collection_name(user_id)}/messages",
                    json={
                        "messages": [
                            {
                                "role": message.get("role"),
                                "content": message.get("content"),
                                "metadata": {
                                    "agent": message.get("agent") or "main",
                                    "timestamp": datetime.now(timezone.utc).isoformat(),
                                },
                            }
                        ]
                    },
                )
                response.raise_for_status()
                self.last_served_by = MemoryMode.REMOTE
                return response.json()
            except (httpx.HTTPError, ValueError) as e:
                self._enter_fallback(e)
        self.last_served_by = MemoryMode.LOCAL_FALLBACK
        return self.fallback.add(user_id, message)

    async def get_memory(self, user_id: str, *, limit: int = 10) -> List[Dict[str, Any]]:
        if self.mode is MemoryMode.REMOTE:
            try:
                await self._ensure_collection(user_id)
                response = await self._client.get(
                    f"/collections/{self.collection_name(user_id)}/messages",
                    params={"limit": limit},
                )
                response.raise_for_status()
                self.last_served_by = MemoryMode.REMOTE
                return list(response.json().get("messages") or [])
            except (httpx.HTTPError, ValueError) as e:
                self._enter_fallback(e)
        self.last_served_by = MemoryMode.LOCAL_FALLBACK
        return self.fallback.get(user_id, limit=limit)

    async def search_memory(self, user_id: str, query: str, *, limit: int = 5) -> List[Dict[str, Any]]:
        if self.mode is MemoryMode.REMOTE:
            try:
                await self._ensure_collection(user_id)
                response = await self._client.post(
                    f"/collections/{self.collection_name(user_id)}/search",
                    json={"query": query, "limit": limit, "search_scope": "message"},
                )
                response.raise_for_status()
                self.last_served_by = MemoryMode.REMOTE
                return list(response.json().get("results") or [])
            except (httpx.HTTPError, ValueError) as e:
                self._enter_fallback(e)
        self.last_served_by = MemoryMode.LOCAL_FALLBACK
        return self.fallback.search(user_id, query)[:limit]


__all__ = [
    "MemoryMode",
    "MemoryService",
    "LocalMemoryStore",
    "InMemoryMemoryService",
    "ZepConfig",
    "ZepMemoryService",
    "LOCAL_MEMORY_LIMIT",
]
