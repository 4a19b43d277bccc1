"""Exception types raised inside the orchestration runtime.

Public orchestrator and agent-manager methods never let these escape; they
are raised by internal helpers and converted to failure values at the
boundary.
"""

from __future__ import annotations


class SwarmError(RuntimeError):
    """Base class for orchestration failures."""


class SessionNotActiveError(SwarmError):
    """Raised when an operation needs an active learning session."""


class AgentNotActiveError(SwarmError):
    """Raised when a response is requested from an agent that is not active."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id} is not active")
        self.agent_id = agent_id


__all__ = [
    "SwarmError",
    "SessionNotActiveError",
    "AgentNotActiveError",
]
