"""
Graph Store - Persistence collaborator for sessions, nodes, and edges

WHAT: GraphStore protocol plus in-process and ArangoDB-backed implementations
WHERE: swarm/runtime/orchestration/storage.py - persistence adapters
WHO: SwarmOrchestrator and AgentManager persisting the thought graph
TIME: In-process O(1); Arango write latency bounded by the client

Every operation is fallible and reports failure as ``None`` rather than
raising. Callers check the result before mirroring it in memory.

Collections:
- learning_sessions (document): session start/end, summary, topics
- swarm_nodes (document): thought nodes
- thought_connections (document): typed edges, unique per (source, target, type)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import ValidationError

from .models import EdgeRecord, NodeRecord, SessionRecord, utc_now

logger = logging.getLogger(__name__)


def _build_node(
    session_id: str,
    user_id: str,
    node_type: str,
    content: str,
    metadata: Optional[Dict[str, Any]],
) -> Optional[NodeRecord]:
    try:
        return NodeRecord(
            session_id=session_id,
            user_id=user_id,
            node_type=node_type,
            content=content or "",
            metadata=dict(metadata or {}),
        )
    except ValidationError as e:
        logger.error(f"Rejected {node_type} node for session {session_id}: {e}")
        return None


def _build_edge(
    source_id: str,
    target_id: str,
    edge_type: str,
    strength: float,
    metadata: Optional[Dict[str, Any]],
) -> Optional[EdgeRecord]:
    try:
        return EdgeRecord(
            source_id=source_id,
            target_id=target_id,
            edge_type=edge_type,
            strength=strength,
            metadata=dict(metadata or {}),
        )
    except ValidationError as e:
        logger.error(f"Rejected {edge_type} edge {source_id} -> {target_id}: {e}")
        return None


@runtime_checkable
class GraphStore(Protocol):
    """Abstract interface for thought-graph persistence."""

    async def create_session(self, user_id: str, agent_id: str) -> Optional[SessionRecord]:
        """Persist a new session record."""

    async def end_session(self, session_id: str, summary: str, topics: Sequence[str]) -> Optional[SessionRecord]:
        """Record end time, summary, and covered topics."""

    async def create_node(
        self,
        session_id: str,
        user_id: str,
        node_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[NodeRecord]:
        """Append an immutable node."""

    async def connect_nodes(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float = 0.5,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[EdgeRecord]:
        """Append a typed edge between two nodes."""


class InMemoryGraphStore:
    """Process-local GraphStore used by default and in tests.

    ``fail_on`` names operations (e.g. ``"create_session"``) that should
    report failure, which is how tests simulate a broken backend.
    """

    def __init__(self, *, fail_on: Sequence[str] = ()) -> None:
        self.sessions: dict[str, SessionRecord] = {}
        self.nodes: dict[str, NodeRecord] = {}
        self.edges: dict[tuple[str, str, str], EdgeRecord] = {}
        self.fail_on: set[str] = set(fail_on)
        self.schema_ready = False

    def ensure_schema(self) -> None:
        self.schema_ready = True

    async def create_session(self, user_id: str, agent_id: str) -> Optional[SessionRecord]:
        if "create_session" in self.fail_on:
            return None
        record = SessionRecord(user_id=user_id, agent_id=agent_id)
        self.sessions[record.id] = record
        return record

    async def end_session(self, session_id: str, summary: str, topics: Sequence[str]) -> Optional[SessionRecord]:
        if "end_session" in self.fail_on:
            return None
        existing = self.sessions.get(session_id)
        if existing is None:
            logger.error(f"Cannot end unknown session {session_id}")
            return None
        updated = existing.model_copy(
            update={"ended_at": utc_now(), "summary": summary, "topics_covered": list(topics)}
        )
        self.sessions[session_id] = updated
        return updated

    async def create_node(
        self,
        session_id: str,
        user_id: str,
        node_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[NodeRecord]:
        if "create_node" in self.fail_on or f"create_node:{node_type}" in self.fail_on:
            return None
        node = _build_node(session_id, user_id, node_type, content, metadata)
        if node is not None:
            self.nodes[node.id] = node
        return node

    async def connect_nodes(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float = 0.5,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[EdgeRecord]:
        if "connect_nodes" in self.fail_on:
            return None
        key = (source_id, target_id, edge_type)
        if key in self.edges:
            return self.edges[key]
        edge = _build_edge(source_id, target_id, edge_type, strength, metadata)
        if edge is not None:
            self.edges[key] = edge
        return edge

    # ------------------ queries -------------------
    def list_nodes(self, session_id: str) -> List[NodeRecord]:
        return [n for n in self.nodes.values() if n.session_id == session_id]

    def edges_for(self, node_id: str) -> List[EdgeRecord]:
        return [e for e in self.edges.values() if node_id in (e.source_id, e.target_id)]


class DocumentClient(Protocol):
    """Subset of the Arango HTTP client the graph store relies on."""

    def bulk_insert(self, collection: str, docs: List[Dict[str, Any]]) -> int: ...

    def execute_query(self, aql: str, bind_vars: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...

    def create_collections(self, definitions: List["CollectionDefinition"]) -> None: ...


@dataclass(slots=True)
class CollectionDefinition:
    name: str
    type: str = "document"
    indexes: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class ArangoGraphStore:
    """Arango-backed GraphStore; the blocking client runs in a worker thread."""

    client: DocumentClient

    SESSIONS: str = "learning_sessions"
    NODES: str = "swarm_nodes"
    EDGES: str = "thought_connections"

    # ------------------ schema ------------------
    def ensure_schema(self) -> None:
        definitions = [
            CollectionDefinition(
                name=self.SESSIONS,
                indexes=[
                    {"type": "persistent", "fields": ["user_id", "started_at"], "unique": False, "sparse": False},
                ],
            ),
            CollectionDefinition(
                name=self.NODES,
                indexes=[
                    {"type": "persistent", "fields": ["session_id", "created_at"], "unique": False, "sparse": False},
                ],
            ),
            CollectionDefinition(
                name=self.EDGES,
                indexes=[
                    {
                        "type": "persistent",
                        "fields": ["source_node_id", "target_node_id", "connection_type"],
                        "unique": True,
                        "sparse": False,
                    },
                ],
            ),
        ]
        self.client.create_collections(definitions)

    async def _insert(self, collection: str, doc: Dict[str, Any]) -> bool:
        try:
            await asyncio.to_thread(self.client.bulk_insert, collection, [doc])
        except Exception as e:
            logger.error(f"Failed to insert into {collection}: {e}")
            return False
        return True

    # ------------------ sessions ----------------
    async def create_session(self, user_id: str, agent_id: str) -> Optional[SessionRecord]:
        record = SessionRecord(user_id=user_id, agent_id=agent_id)
        if not await self._insert(self.SESSIONS, record.to_document()):
            return None
        return record

    async def end_session(self, session_id: str, summary: str, topics: Sequence[str]) -> Optional[SessionRecord]:
        aql = (
            f"UPDATE @key WITH {{ended_at: @ended_at, session_summary: @summary, topics_covered: @topics}} "
            f"IN {self.SESSIONS} "
            "RETURN NEW"
        )
        bind = {
            "key": session_id,
            "ended_at": utc_now().isoformat(),
            "summary": summary,
            "topics": list(topics),
        }
        try:
            rows = await asyncio.to_thread(self.client.execute_query, aql, bind)
        except Exception as e:
            logger.error(f"Failed to end session {session_id}: {e}")
            return None
        if not rows:
            return None
        return SessionRecord.from_document(rows[0])

    # ------------------ graph -------------------
    async def create_node(
        self,
        session_id: str,
        user_id: str,
        node_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[NodeRecord]:
        node = _build_node(session_id, user_id, node_type, content, metadata)
        if node is None or not await self._insert(self.NODES, node.to_document()):
            return None
        return node

    async def connect_nodes(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float = 0.5,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[EdgeRecord]:
        edge = _build_edge(source_id, target_id, edge_type, strength, metadata)
        if edge is None or not await self._insert(self.EDGES, edge.to_document()):
            return None
        return edge


__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "ArangoGraphStore",
    "CollectionDefinition",
    "DocumentClient",
]
