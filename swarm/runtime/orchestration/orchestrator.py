"""
Swarm Orchestrator - Central Coordination Point

WHAT: Session lifecycle, agent registry, message queue, and event fan-out
WHERE: swarm/runtime/orchestration/orchestrator.py - top of the runtime stack
WHO: Entry point for every learning-session interaction
TIME: process_user_message returns after one node write; responses arrive via events

Central coordination point that ties together graph persistence,
conversation memory, model generation, and telemetry. User messages are
queued and drained by a single background task so responses are produced
strictly in arrival order.

Boundary Notes:
- One active session per orchestrator instance
- Collaborators are injected; nothing here is a process-wide singleton
- end_session is the only operation that clears accumulated graph state
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections import deque
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Deque, Dict, Mapping, Optional, Sequence

from .agent_manager import AgentManager, ContextNode
from .config import OrchestratorConfig
from .errors import SessionNotActiveError
from .events import EventBus, Listener
from .memory import MemoryService, ZepConfig, ZepMemoryService
from .model_engine import LanguageModel, OpenAIChatEngine
from .models import EdgeRecord, NodeRecord, SessionRecord, utc_now
from .session import ActiveSession, Agent, AgentResponse, ProcessingTask
from .storage import GraphStore, InMemoryGraphStore
from .telemetry import NoOpTelemetryClient, TelemetryClient
from .thought_graph import ThoughtGraph
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


class OrchestratorState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SESSION_ACTIVE = "session_active"


class SwarmOrchestrator:
    """Facade that coordinates sessions, agents, and the processing queue."""

    def __init__(
        self,
        *,
        config: OrchestratorConfig | None = None,
        storage: GraphStore | None = None,
        memory: MemoryService | None = None,
        model: LanguageModel | None = None,
        tools: ToolRegistry | None = None,
        telemetry: TelemetryClient | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._config = config or OrchestratorConfig()
        self._storage = storage
        self._memory = memory
        self._model = model
        self._tools = tools or getattr(model, "tools", None) or ToolRegistry()
        self._telemetry = telemetry or NoOpTelemetryClient()
        self._events = events or EventBus()
        self._graph = ThoughtGraph()
        self._agents: Dict[str, Agent] = {}
        self._session: Optional[ActiveSession] = None
        self._queue: Deque[ProcessingTask] = deque()
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._is_processing = False
        self._closing = False
        self._initialized = False
        self.user_id: Optional[str] = None
        self._agent_manager = AgentManager(self)

    @classmethod
    def from_env(
        cls,
        *,
        storage: GraphStore | None = None,
        telemetry: TelemetryClient | None = None,
    ) -> "SwarmOrchestrator":
        """Wire the OpenAI engine and Zep memory from environment variables.

        Storage defaults to the in-process store; pass an ``ArangoGraphStore``
        for durable graphs.
        """

        tools = ToolRegistry()
        return cls(
            config=OrchestratorConfig.from_env(),
            storage=storage or InMemoryGraphStore(),
            memory=ZepMemoryService(config=ZepConfig.from_env()),
            model=OpenAIChatEngine.from_env(tools=tools),
            tools=tools,
            telemetry=telemetry,
        )

    # ---------------------- accessors ----------------------
    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def storage(self) -> Optional[GraphStore]:
        return self._storage

    @property
    def memory(self) -> Optional[MemoryService]:
        return self._memory

    @property
    def model(self) -> Optional[LanguageModel]:
        return self._model

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def telemetry(self) -> TelemetryClient:
        return self._telemetry

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def agent_manager(self) -> AgentManager:
        return self._agent_manager

    @property
    def graph(self) -> ThoughtGraph:
        return self._graph

    @property
    def agents(self) -> Mapping[str, Agent]:
        return MappingProxyType(self._agents)

    @property
    def active_session(self) -> Optional[ActiveSession]:
        return self._session

    @property
    def state(self) -> OrchestratorState:
        if not self._initialized:
            return OrchestratorState.UNINITIALIZED
        if self._session is not None:
            return OrchestratorState.SESSION_ACTIVE
        return OrchestratorState.INITIALIZED

    @property
    def pending_tasks(self) -> int:
        return len(self._queue)

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    def active_agent_ids(self) -> list[str]:
        return [agent_id for agent_id, agent in self._agents.items() if agent.is_active]

    # ---------------------- initialization ----------------------
    async def initialize(
        self,
        user_id: str,
        *,
        storage: GraphStore | None = None,
        memory: MemoryService | None = None,
        model: LanguageModel | None = None,
    ) -> bool:
        if self._initialized:
            return True

        self._storage = storage or self._storage
        self._memory = memory or self._memory
        self._model = model or self._model

        missing = [
            name
            for name, value in (("storage", self._storage), ("memory", self._memory), ("model", self._model))
            if value is None
        ]
        if missing:
            logger.error(f"Cannot initialize swarm orchestrator, missing collaborators: {', '.join(missing)}")
            return False

        try:
            ensure_schema = getattr(self._storage, "ensure_schema", None)
            if callable(ensure_schema):
                outcome = ensure_schema()
                if inspect.isawaitable(outcome):
                    await outcome
        except Exception as e:
            logger.error(f"Error initializing swarm orchestrator: {e}")
            return False

        self.user_id = user_id
        self._reset_agents()
        self._register_default_handlers()
        self._initialized = True
        logger.info("Swarm orchestrator initialized successfully")
        return True

    def _reset_agents(self) -> None:
        self._agents = {
            agent_id: Agent.ready(agent_id, prompt)
            for agent_id, prompt in self._config.agent_prompts.items()
        }

    def _register_default_handlers(self) -> None:
        self.on("agent:activate", lambda data: logger.info(f"Agent activated: {data.get('agent_id')}"))
        self.on("agent:deactivate", lambda data: logger.info(f"Agent deactivated: {data.get('agent_id')}"))
        self.on("session:start", lambda data: logger.info(f"Session started: {data.get('session_id')}"))
        self.on("session:end", lambda data: logger.info(f"Session ended: {data.get('session_id')}"))
        self.on("task:error", lambda data: logger.error(f"Task error: {data.get('error')}"))

    # ---------------------- session lifecycle ----------------------
    async def start_session(
        self,
        user_id: str,
        primary_agent_id: Optional[str] = None,
        *,
        replace: bool = False,
    ) -> Optional[SessionRecord]:
        """Open a learning session and activate its primary agent.

        ``primary_agent_id`` defaults to ``config.default_agent_id``. If any
        step after the store accepts the session fails, the in-memory session
        is rolled back so a later start is not rejected.

        A second call while a session is active is rejected unless
        ``replace`` is set, in which case the previous in-memory state is
        discarded without persisting an end for it.
        """

        primary_agent_id = primary_agent_id or self._config.default_agent_id
        opened: Optional[ActiveSession] = None
        try:
            if not self._initialized and not await self.initialize(user_id):
                return None

            if self._session is not None:
                if not replace:
                    logger.warning(
                        f"Session {self._session.id} is already active; end it or pass replace=True"
                    )
                    return None
                await self._discard_session()

            record = await self._storage.create_session(user_id, primary_agent_id)
            if record is None:
                logger.error(f"Failed to create session for user {user_id}")
                return None

            self.user_id = user_id
            opened = ActiveSession.create(
                session_id=record.id,
                user_id=user_id,
                primary_agent_id=primary_agent_id,
            )
            self._session = opened

            await self._record_node(
                "session_start",
                "Learning session initialized",
                {"agent_id": primary_agent_id},
            )
            if not await self._agent_manager.activate_agent(primary_agent_id):
                logger.warning(f"Primary agent {primary_agent_id} could not be activated")

            self.emit(
                "session:start",
                {"session_id": record.id, "user_id": user_id, "primary_agent_id": primary_agent_id},
            )
            return record
        except Exception as e:
            logger.error(f"Error starting session: {e}", exc_info=True)
            if opened is not None and self._session is opened:
                self._reset_runtime()
                self._session = None
            return None

    async def _discard_session(self) -> None:
        previous = self._session
        self._closing = True
        try:
            self._queue.clear()
            await self._wait_for_drain()
        finally:
            self._closing = False
        self._reset_runtime()
        self._session = None
        if previous is not None:
            logger.warning(f"Discarding active session {previous.id} without persisting its end")
            self.emit("session:replaced", {"session_id": previous.id, "user_id": previous.user_id})

    async def end_session(self, summary: str = "") -> Optional[Dict[str, Any]]:
        session = self._session
        if session is None:
            logger.warning("No active session to end")
            return None

        self._closing = True
        pending = list(self._queue)
        try:
            self._queue.clear()
            await self._wait_for_drain()

            topics = sorted(session.topics)
            record = await self._storage.end_session(session.id, summary, topics)
            if record is None:
                logger.error(f"Failed to persist end of session {session.id}")
                self._requeue(pending)
                return None

            logger.info(f"Ending session {session.id}: {self._graph.summarize()}")
            self._reset_runtime()
            session.status = "completed"
            session.end_time = record.ended_at or utc_now()
            session.summary = summary

            self.emit(
                "session:end",
                {
                    "session_id": session.id,
                    "user_id": session.user_id,
                    "summary": summary,
                    "topics_covered": topics,
                },
            )
            self._session = None
            return session.snapshot()
        except Exception as e:
            logger.error(f"Error ending session: {e}", exc_info=True)
            if self._session is session:
                self._requeue(pending)
            return None
        finally:
            self._closing = False

    def _requeue(self, pending: Sequence[ProcessingTask]) -> None:
        """Put tasks dropped by a failed end back at the head of the queue."""

        if not pending:
            return
        self._queue.extendleft(reversed(pending))
        self._ensure_draining()

    def _reset_runtime(self) -> None:
        self._reset_agents()
        self._graph.clear()
        self._queue.clear()

    def _require_session(self) -> ActiveSession:
        if self._session is None:
            raise SessionNotActiveError("No active session found")
        return self._session

    # ---------------------- message queue ----------------------
    async def process_user_message(
        self,
        message: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Record and enqueue a user message; the reply arrives as ``agent:response``."""

        session = self._session
        if session is None or self._closing:
            logger.warning("No active session found")
            return {"success": False, "error": "No active session found"}

        try:
            node = await self._record_node(
                "user_message",
                message,
                {"timestamp": datetime.now(timezone.utc).isoformat()},
            )
            if self._session is not session or self._closing:
                logger.warning(f"Session {session.id} closed before message was queued")
                return {"success": False, "error": "No active session found"}
            task = ProcessingTask(
                message=message,
                node_id=node.id if node else None,
                options=dict(options or {}),
            )
            self._queue.append(task)
            self._ensure_draining()
            return {"success": True, "message_id": task.node_id}
        except Exception as e:
            logger.error(f"Error processing user message: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._process_queue())

    async def _process_queue(self) -> None:
        self._is_processing = True
        try:
            while self._queue:
                task = self._queue.popleft()
                await self._process_task(task)
        finally:
            self._is_processing = False

    async def _process_task(self, task: ProcessingTask) -> None:
        session = self._session
        if session is None:
            agent_id = task.options.get("agent_id")
            self.emit(
                "task:error",
                {
                    "error": "No active session found",
                    "task_type": task.task_type,
                    "node_id": task.node_id,
                    "agent_id": agent_id,
                },
            )
            self.emit(
                "task:complete",
                {
                    "task_type": task.task_type,
                    "node_id": task.node_id,
                    "agent_id": agent_id,
                    "response_node_id": None,
                    "success": False,
                },
            )
            return
        agent_id = task.options.get("agent_id") or session.primary_agent_id
        context = [task.node_id] if task.node_id else []
        span_attributes = {
            "session_id": session.id,
            "task_type": task.task_type,
            "agent_id": agent_id,
            "queue_depth": len(self._queue),
        }
        with self._telemetry.span("swarm.process_task", attributes=span_attributes) as span:
            try:
                result = await self._agent_manager.generate_agent_response(
                    agent_id,
                    task.message,
                    context,
                    task.options,
                )
            except Exception as e:
                logger.error(f"Error processing {task.task_type} task: {e}", exc_info=True)
                result = AgentResponse(content="", success=False, agent=agent_id, error=str(e))
            span.set_attribute("success", result.success)

        if not result.success:
            self.emit(
                "task:error",
                {
                    "error": result.error,
                    "task_type": task.task_type,
                    "node_id": task.node_id,
                    "agent_id": agent_id,
                },
            )
        self.emit(
            "task:complete",
            {
                "task_type": task.task_type,
                "node_id": task.node_id,
                "agent_id": agent_id,
                "response_node_id": result.node_id,
                "success": result.success,
            },
        )

    async def _wait_for_drain(self) -> None:
        task = self._drain_task
        if task is None or task.done() or task is asyncio.current_task():
            return
        await asyncio.wait({task})

    async def join(self) -> None:
        """Wait until every queued task has been processed."""

        while self._drain_task is not None and not self._drain_task.done():
            await self._wait_for_drain()

    async def aclose(self) -> None:
        """Finish queued work, then close collaborators that hold connections."""

        await self.join()
        for collaborator in (self._storage, self._memory, self._model):
            close = getattr(collaborator, "aclose", None)
            if callable(close):
                outcome = close()
                if inspect.isawaitable(outcome):
                    await outcome

    # ---------------------- graph helpers ----------------------
    async def _record_node(
        self,
        node_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[NodeRecord]:
        session = self._require_session()
        node = await self._storage.create_node(session.id, session.user_id, node_type, content, metadata)
        if node is None:
            logger.warning(f"Failed to store {node_type} node for session {session.id}")
            return None
        if self._session is not session:
            logger.warning(f"Session {session.id} ended while storing {node_type} node; not tracked")
            return None
        self._graph.track(node)
        return node

    async def _connect(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EdgeRecord:
        stored = await self._storage.connect_nodes(source_id, target_id, edge_type, strength, metadata)
        if stored is None:
            logger.warning(f"Failed to store {edge_type} edge {source_id} -> {target_id}")
        return self._add_connection(source_id, target_id, edge_type, strength, metadata)

    def _add_connection(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float = 1.0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EdgeRecord:
        return self._graph.add_connection(source_id, target_id, edge_type, strength, metadata)

    # ---------------------- events ----------------------
    def on(self, event_name: str, callback: Listener) -> "SwarmOrchestrator":
        self._events.on(event_name, callback)
        return self

    def off(self, event_name: str, callback: Optional[Listener] = None) -> "SwarmOrchestrator":
        self._events.off(event_name, callback)
        return self

    def emit(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> int:
        return self._events.emit(event_name, data)

    # ---------------------- agent delegates ----------------------
    async def activate_agent(
        self,
        agent_id: str,
        connection_type: str = "direct",
        source_node_id: Optional[str] = None,
    ) -> bool:
        return await self._agent_manager.activate_agent(agent_id, connection_type, source_node_id)

    async def deactivate_agent(self, agent_id: str) -> bool:
        return await self._agent_manager.deactivate_agent(agent_id)

    async def generate_agent_response(
        self,
        agent_id: str,
        message: str,
        context_nodes: Sequence[ContextNode] = (),
        options: Optional[Dict[str, Any]] = None,
    ) -> AgentResponse:
        return await self._agent_manager.generate_agent_response(agent_id, message, context_nodes, options)

    def recommend_agent_for_topic(self, topic: str) -> str:
        return self._agent_manager.recommend_agent_for_topic(topic)


__all__ = ["OrchestratorState", "SwarmOrchestrator"]
