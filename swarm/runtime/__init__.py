"""
Runtime Orchestration Module

WHAT: Runtime subsystem coordinating the educational agent swarm
WHERE: swarm/runtime/ - orchestration layer above storage, memory, and model clients
WHO: Learning-session callers (chat surfaces, scripted tutors, tests)
TIME: Queue dispatch is immediate; response latency is bounded by the model backend

Provides the execution layer for learning sessions: agent activation,
thought-graph provenance, the serialized message queue, and the event bus
that surfaces agent responses to callers.

Boundary Notes:
- Storage, memory, and model backends are injected collaborators
- Only the orchestrator and its agent manager mutate session state
"""

__all__ = ["orchestration"]
