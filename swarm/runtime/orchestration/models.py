"""
Swarm Records - Type-safe persisted records for sessions and the thought graph

WHAT: Pydantic models for learning sessions, thought nodes, and thought edges
WHERE: swarm/runtime/orchestration/models.py - data layer
WHO: Graph stores returning records; orchestrator and agent manager consuming them
TIME: Model validation <1ms

Records are what the storage collaborator hands back. Nodes and edges are
frozen once created: the thought graph is append-only, history is never
rewritten.

Document mapping mirrors the storage schema:
- learning_sessions (document): one per started session
- swarm_nodes (document): one per recorded event/utterance
- thought_connections (document): typed, weighted provenance links
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NodeType = Literal[
    "session_start",
    "agent_activation",
    "agent_deactivation",
    "agent_prompt",
    "agent_response",
    "user_message",
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return str(uuid.uuid4())


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class SessionRecord(BaseModel):
    """Persisted learning session as returned by the graph store."""

    id: str = Field(default_factory=new_record_id)
    user_id: str
    agent_id: str
    started_at: datetime = Field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    summary: str = ""
    topics_covered: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def primary_agent_id(self) -> str:
        return self.agent_id

    def to_document(self) -> Dict[str, Any]:
        return {
            "_key": self.id,
            "user_id": self.user_id,
            "agent_id": self.agent_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "session_summary": self.summary,
            "topics_covered": list(self.topics_covered),
            "metadata": self.metadata,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> SessionRecord:
        return cls(
            id=doc["_key"],
            user_id=doc["user_id"],
            agent_id=doc["agent_id"],
            started_at=_parse_ts(doc["started_at"]),
            ended_at=_parse_ts(doc.get("ended_at")),
            summary=doc.get("session_summary") or "",
            topics_covered=doc.get("topics_covered", []),
            metadata=doc.get("metadata", {}),
        )


class NodeRecord(BaseModel):
    """
    A single recorded event or utterance in the thought graph.

    Examples:
    - node_type="user_message", content="Tell me about photosynthesis"
    - node_type="agent_activation", content="Agent science activated"
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    session_id: str
    user_id: str
    node_type: NodeType
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_key": self.id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "node_type": self.node_type,
            "node_content": self.content,
            "active": True,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


class EdgeRecord(BaseModel):
    """
    Typed, weighted, directed link between two thought nodes.

    Examples:
    - user_message -> agent_prompt, edge_type="context", strength=0.6
    - agent_prompt -> agent_response, edge_type="response", strength=1.0
    - agent_activation -> agent_deactivation, edge_type="lifecycle", strength=1.0
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    source_id: str
    target_id: str
    edge_type: str
    strength: float = Field(ge=0.0, le=1.0, default=0.5)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("edge_type")
    @classmethod
    def _edge_type_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("edge_type must be a non-empty string")
        return value

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.source_id, self.target_id, self.edge_type)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_key": self.id,
            "source_node_id": self.source_id,
            "target_node_id": self.target_id,
            "connection_type": self.edge_type,
            "connection_strength": self.strength,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


__all__ = [
    "NodeType",
    "SessionRecord",
    "NodeRecord",
    "EdgeRecord",
    "new_record_id",
    "utc_now",
]
