"""
Session State - Runtime records for the active learning session

WHAT: Dataclasses for the active session, agents, queued tasks, and responses
WHERE: swarm/runtime/orchestration/session.py - state owned by the orchestrator
WHO: SwarmOrchestrator (owner) and AgentManager (mutates on its behalf)
TIME: All operations O(1) except snapshot copies

These objects live only in process memory. Persisted counterparts are the
pydantic records in ``models.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

SessionStatus = Literal["active", "completed"]
AgentStatus = Literal["ready", "active"]
TaskType = Literal["user_message"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ActiveSession:
    """The single learning session an orchestrator instance is running."""

    id: str
    user_id: str
    primary_agent_id: str
    start_time: datetime = field(default_factory=_now)
    end_time: Optional[datetime] = None
    topics: set[str] = field(default_factory=set)
    agents: set[str] = field(default_factory=set)
    status: SessionStatus = "active"
    summary: str = ""

    @classmethod
    def create(cls, *, session_id: str, user_id: str, primary_agent_id: str) -> "ActiveSession":
        return cls(
            id=session_id,
            user_id=user_id,
            primary_agent_id=primary_agent_id,
            agents={primary_agent_id},
        )

    def snapshot(self) -> dict[str, Any]:
        """Return a detached copy; ``topics_covered`` is a sorted list."""

        return {
            "id": self.id,
            "user_id": self.user_id,
            "primary_agent_id": self.primary_agent_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "topics_covered": sorted(self.topics),
            "agents": sorted(self.agents),
            "status": self.status,
            "summary": self.summary,
        }


@dataclass(slots=True)
class HistoryEntry:
    prompt_node_id: Optional[str]
    response_node_id: Optional[str]
    success: bool
    timestamp: datetime = field(default_factory=_now)


@dataclass(slots=True)
class Agent:
    """A named persona with a fixed system prompt."""

    id: str
    system_prompt: str
    status: AgentStatus = "ready"
    activated_at: Optional[datetime] = None
    activation_node_id: Optional[str] = None
    processing_history: list[HistoryEntry] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def ready(cls, agent_id: str, system_prompt: str) -> "Agent":
        return cls(id=agent_id, system_prompt=system_prompt)

    @classmethod
    def activated(cls, agent_id: str, system_prompt: str) -> "Agent":
        return cls(id=agent_id, system_prompt=system_prompt, status="active", activated_at=_now())

    def record(self, *, prompt_node_id: Optional[str], response_node_id: Optional[str], success: bool) -> HistoryEntry:
        entry = HistoryEntry(
            prompt_node_id=prompt_node_id,
            response_node_id=response_node_id,
            success=success,
        )
        self.processing_history.append(entry)
        return entry


@dataclass(slots=True)
class ProcessingTask:
    """One queued unit of user-message work."""

    message: str
    node_id: Optional[str]
    options: dict[str, Any] = field(default_factory=dict)
    task_type: TaskType = "user_message"
    enqueued_at: datetime = field(default_factory=_now)


@dataclass(slots=True)
class AgentResponse:
    content: str
    success: bool
    agent: str
    node_id: Optional[str] = None
    error: Optional[str] = None


__all__ = [
    "ActiveSession",
    "Agent",
    "AgentResponse",
    "HistoryEntry",
    "ProcessingTask",
]
