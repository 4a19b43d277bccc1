"""
Agent Manager - Agent lifecycle and response generation

WHAT: Activates/deactivates agents and turns one prompt into one recorded response
WHERE: swarm/runtime/orchestration/agent_manager.py - acts on orchestrator state
WHO: SwarmOrchestrator (session start, queue drain) and direct callers
TIME: One memory read, one model call, two memory writes per response

The manager owns no state. Every read and write goes through the
orchestrator it was built for: the agent registry, the active session, the
thought graph, and the collaborators.

Response provenance recorded per call:
    context node --context(0.6)--> agent_prompt --response(1.0)--> agent_response
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from .config import APOLOGY_MESSAGE
from .errors import AgentNotActiveError
from .models import NodeRecord
from .session import Agent, AgentResponse
from .topics import TopicExtractor, recommend_agent_for_topic

if TYPE_CHECKING:
    from .orchestrator import SwarmOrchestrator

logger = logging.getLogger(__name__)

ContextNode = Union[str, NodeRecord, Dict[str, Any]]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _context_node_id(node: ContextNode) -> Optional[str]:
    if isinstance(node, str):
        return node
    if isinstance(node, NodeRecord):
        return node.id
    if isinstance(node, dict):
        return node.get("id")
    return getattr(node, "id", None)


class AgentManager:
    def __init__(self, core: "SwarmOrchestrator") -> None:
        self.core = core
        self._extractor = TopicExtractor(core.config.topic_keywords)

    # ---------------------- lifecycle ----------------------
    async def activate_agent(
        self,
        agent_id: str,
        connection_type: str = "direct",
        source_node_id: Optional[str] = None,
    ) -> bool:
        """Activate ``agent_id``; already-active agents are left untouched."""

        core = self.core
        existing = core.agents.get(agent_id)
        agent: Optional[Agent] = None
        joined = False
        try:
            if existing is not None and existing.is_active:
                return True

            prompt = core.config.prompt_for(agent_id)
            if prompt is None:
                logger.warning(f"No system prompt found for agent: {agent_id}")
                return False

            agent = Agent.activated(agent_id, prompt)
            core._agents[agent_id] = agent

            session = core.active_session
            if session is not None:
                joined = agent_id not in session.agents
                session.agents.add(agent_id)
                activation = await core._record_node(
                    "agent_activation",
                    f"Agent {agent_id} activated",
                    {"agent_id": agent_id, "timestamp": _timestamp()},
                )
                if activation is not None:
                    agent.activation_node_id = activation.id
                    if source_node_id and core.graph.has_node(source_node_id):
                        await core._connect(
                            source_node_id,
                            activation.id,
                            connection_type,
                            core.config.activation_strength,
                            {"reason": "Agent activation"},
                        )

            core.emit(
                "agent:activate",
                {"agent_id": agent_id, "session_id": session.id if session else None},
            )
            return True
        except Exception as e:
            logger.error(f"Error activating agent {agent_id}: {e}", exc_info=True)
            if agent is not None and core._agents.get(agent_id) is agent:
                if existing is not None:
                    core._agents[agent_id] = existing
                else:
                    core._agents.pop(agent_id, None)
                session = core.active_session
                if joined and session is not None:
                    session.agents.discard(agent_id)
            return False

    async def deactivate_agent(self, agent_id: str) -> bool:
        core = self.core
        agent = core.agents.get(agent_id)
        if agent is None or not agent.is_active:
            logger.warning(f"Agent {agent_id} is not active")
            return True

        try:
            session = core.active_session
            if session is not None:
                deactivation = await core._record_node(
                    "agent_deactivation",
                    f"Agent {agent_id} deactivated",
                    {"agent_id": agent_id, "timestamp": _timestamp()},
                )
                if deactivation is not None and agent.activation_node_id:
                    await core._connect(
                        agent.activation_node_id,
                        deactivation.id,
                        "lifecycle",
                        1.0,
                        {"reason": "Agent lifecycle"},
                    )

            agent.status = "ready"
            agent.activation_node_id = None

            core.emit(
                "agent:deactivate",
                {"agent_id": agent_id, "session_id": session.id if session else None},
            )
            return True
        except Exception as e:
            logger.error(f"Error deactivating agent {agent_id}: {e}", exc_info=True)
            return False

    # ---------------------- responses ----------------------
    async def _recent_history(self, user_id: str) -> List[Dict[str, str]]:
        window = self.core.config.memory_window
        try:
            memories = await self.core.memory.get_memory(user_id, limit=window)
        except Exception as e:
            logger.warning(f"Error getting conversation history from memory: {e}")
            return []
        history = [
            {"role": str(m["role"]), "content": str(m["content"])}
            for m in (memories or [])
            if m.get("role") and m.get("content") is not None
        ]
        return history[-window:] if window > 0 else []

    async def _remember(self, user_id: str, agent_id: str, message: str, reply: str) -> None:
        try:
            await self.core.memory.add_memory(user_id, {"role": "user", "content": message, "agent": agent_id})
            await self.core.memory.add_memory(user_id, {"role": "assistant", "content": reply, "agent": agent_id})
        except Exception as e:
            logger.warning(f"Error adding to memory: {e}")

    async def generate_agent_response(
        self,
        agent_id: str,
        message: str,
        context_nodes: Sequence[ContextNode] = (),
        options: Optional[Dict[str, Any]] = None,
    ) -> AgentResponse:
        core = self.core
        opts = dict(options or {})
        try:
            agent = core.agents.get(agent_id)
            if agent is None or not agent.is_active:
                raise AgentNotActiveError(agent_id)
            session = core._require_session()

            context_ids = [cid for cid in (_context_node_id(n) for n in context_nodes) if cid]
            prompt_node = await core._record_node(
                "agent_prompt",
                message,
                {"agent_id": agent_id, "timestamp": _timestamp(), "context_node_ids": context_ids},
            )
            if prompt_node is not None:
                for context_id in context_ids:
                    if core.graph.has_node(context_id):
                        await core._connect(
                            context_id,
                            prompt_node.id,
                            "context",
                            core.config.context_strength,
                            {"reason": "Providing context"},
                        )

            history = await self._recent_history(session.user_id)
            messages = [
                {"role": "system", "content": agent.system_prompt},
                *history,
                {"role": "user", "content": message},
            ]
            tools = core.tools.catalog() if opts.get("use_tools") else None

            span_attributes = {
                "session_id": session.id,
                "agent_id": agent_id,
                "message_count": len(messages),
                "history_turns": len(history),
                "tools": len(tools or ()),
            }
            with core.telemetry.span("swarm.model_generate", attributes=span_attributes) as span:
                result = await core.model.create_chat_completion(
                    messages,
                    model=opts.get("model") or core.config.model,
                    tools=tools,
                    tool_choice=opts.get("tool_choice"),
                    user_id=session.user_id,
                )
                span.set_attribute("success", result.success)
                span.set_attribute("response_chars", len(result.content or ""))

            content = result.content or ""
            response_node = await core._record_node(
                "agent_response",
                content,
                {
                    "agent_id": agent_id,
                    "timestamp": _timestamp(),
                    "prompt_node_id": prompt_node.id if prompt_node else None,
                    "success": result.success,
                },
            )
            if response_node is not None and prompt_node is not None:
                await core._connect(
                    prompt_node.id,
                    response_node.id,
                    "response",
                    1.0,
                    {"reason": "Agent response"},
                )

            agent.record(
                prompt_node_id=prompt_node.id if prompt_node else None,
                response_node_id=response_node.id if response_node else None,
                success=result.success,
            )

            if content:
                session.topics.update(self._extractor.extract(content))

            await self._remember(session.user_id, agent_id, message, content)

            core.emit(
                "agent:response",
                {
                    "agent_id": agent_id,
                    "session_id": session.id,
                    "response_node_id": response_node.id if response_node else None,
                    "content": content,
                },
            )
            return AgentResponse(
                content=content,
                node_id=response_node.id if response_node else None,
                success=result.success,
                agent=agent_id,
                error=result.error,
            )
        except Exception as e:
            logger.error(f"Error generating response from agent {agent_id}: {e}")
            return AgentResponse(content=APOLOGY_MESSAGE, success=False, agent=agent_id, error=str(e))

    # ---------------------- routing ----------------------
    def recommend_agent_for_topic(self, topic: str) -> str:
        return recommend_agent_for_topic(topic, self.core.config.topic_agents)


__all__ = ["AgentManager", "ContextNode"]
