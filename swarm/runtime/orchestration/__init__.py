"""
Swarm Orchestration - Learning sessions over a persisted thought graph

WHAT: Multi-agent educational orchestration with provenance tracking
WHERE: swarm/runtime/orchestration/ - runtime orchestration subsystem
WHO: Chat surfaces and tutors driving one learning session per orchestrator
TIME: Message intake is immediate; replies arrive through ``agent:response``

Every interaction is recorded as a typed node and linked by weighted edges:
- session_start, user_message, agent_activation, agent_deactivation
- agent_prompt, agent_response

Collaborators (injected, never global):
- GraphStore: InMemoryGraphStore, ArangoGraphStore
- MemoryService: ZepMemoryService with local fallback, InMemoryMemoryService
- LanguageModel: OpenAIChatEngine with a bounded tool-call loop

Boundary Notes:
- Collaborator failures degrade to logged warnings and failure results
- The message queue is drained by one task, strictly first-in first-out
"""

from .agent_manager import AgentManager  # noqa: F401
from .config import APOLOGY_MESSAGE, DEFAULT_AGENT_PROMPTS, OrchestratorConfig  # noqa: F401
from .errors import (  # noqa: F401
    AgentNotActiveError,
    SessionNotActiveError,
    SwarmError,
)
from .events import EventBus  # noqa: F401
from .memory import (  # noqa: F401
    InMemoryMemoryService,
    LocalMemoryStore,
    MemoryMode,
    MemoryService,
    ZepConfig,
    ZepMemoryService,
)
from .model_engine import ChatResult, EngineConfig, LanguageModel, OpenAIChatEngine  # noqa: F401
from .models import EdgeRecord, NodeRecord, SessionRecord  # noqa: F401
from .orchestrator import OrchestratorState, SwarmOrchestrator  # noqa: F401
from .session import ActiveSession, Agent, AgentResponse, ProcessingTask  # noqa: F401
from .storage import ArangoGraphStore, GraphStore, InMemoryGraphStore  # noqa: F401
from .telemetry import (  # noqa: F401
    LoggingTelemetryClient,
    NoOpTelemetryClient,
    RecordingTelemetryClient,
    SpanRecord,
    TelemetryClient,
    TelemetrySpan,
)
from .thought_graph import ThoughtGraph  # noqa: F401
from .tools import EDUCATIONAL_TOOLS, ToolRegistry  # noqa: F401
from .topics import extract_topics, recommend_agent_for_topic  # noqa: F401

__all__ = [
    "APOLOGY_MESSAGE",
    "DEFAULT_AGENT_PROMPTS",
    "ActiveSession",
    "Agent",
    "AgentManager",
    "AgentNotActiveError",
    "AgentResponse",
    "ArangoGraphStore",
    "ChatResult",
    "EDUCATIONAL_TOOLS",
    "EdgeRecord",
    "EngineConfig",
    "EventBus",
    "GraphStore",
    "InMemoryGraphStore",
    "InMemoryMemoryService",
    "LanguageModel",
    "LocalMemoryStore",
    "LoggingTelemetryClient",
    "MemoryMode",
    "MemoryService",
    "NoOpTelemetryClient",
    "NodeRecord",
    "OpenAIChatEngine",
    "OrchestratorConfig",
    "OrchestratorState",
    "ProcessingTask",
    "RecordingTelemetryClient",
    "SessionNotActiveError",
    "SessionRecord",
    "SpanRecord",
    "SwarmError",
    "SwarmOrchestrator",
    "TelemetryClient",
    "TelemetrySpan",
    "ThoughtGraph",
    "ToolRegistry",
    "ZepConfig",
    "ZepMemoryService",
    "extract_topics",
    "recommend_agent_for_topic",
]
