"""
Orchestrator Configuration - Agent catalog and runtime knobs

WHAT: Dataclass configuration for the swarm orchestrator and its agent catalog
WHERE: swarm/runtime/orchestration/config.py - configuration layer
WHO: SwarmOrchestrator, AgentManager, and deployment entry points
TIME: Construction only; no I/O except the optional environment lookup

The agent catalog (agent id -> system prompt) is the only configuration the
orchestrator depends on structurally. Topic tables are carried here so they
can be tuned per deployment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .persona_loader import load_prompt_catalog
from .topics import DEFAULT_DOMAIN_KEYWORDS, DEFAULT_TOPIC_AGENT_MAP

MAIN_AGENT_PROMPT = (
    "You are the main onboarding assistant for an AI education platform designed for children.\n"
    "You help guide users to the appropriate specialized educational agents and provide general "
    "platform assistance.\n"
    "You can suggest appropriate educational topics based on the child's age and interests."
)

SCIENCE_AGENT_PROMPT = (
    "You are a specialized science education agent for children.\n"
    "You make complex scientific concepts accessible and engaging.\n"
    "You use simple language and examples that children can understand."
)

CREATIVITY_AGENT_PROMPT = (
    "You are a specialized creative arts education agent for children.\n"
    "You encourage artistic expression, storytelling, and imagination.\n"
    "You suggest activities that develop creative thinking."
)

CRITICAL_THINKING_AGENT_PROMPT = (
    "You are a specialized critical thinking education agent for children.\n"
    "You help develop logical reasoning, problem-solving, and analytical skills.\n"
    "You pose thought-provoking questions and puzzles appropriate for children."
)

DEFAULT_AGENT_PROMPTS: dict[str, str] = {
    "main": MAIN_AGENT_PROMPT,
    "science": SCIENCE_AGENT_PROMPT,
    "creativity": CREATIVITY_AGENT_PROMPT,
    "critical_thinking": CRITICAL_THINKING_AGENT_PROMPT,
}

APOLOGY_MESSAGE = "I apologize, but I encountered an error while processing your request."


@dataclass(slots=True)
class OrchestratorConfig:
    agent_prompts: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_AGENT_PROMPTS))
    default_agent_id: str = "main"
    memory_window: int = 10
    max_parallel_processes: int = 3
    activation_strength: float = 0.8
    context_strength: float = 0.6
    topic_keywords: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_DOMAIN_KEYWORDS)
    )
    topic_agents: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOPIC_AGENT_MAP))
    model: Optional[str] = None

    def prompt_for(self, agent_id: str) -> Optional[str]:
        prompt = self.agent_prompts.get(agent_id)
        if prompt is None or not prompt.strip():
            return None
        return prompt

    @staticmethod
    def from_env(*, prompt_dir: str | None = None, variables: Mapping[str, str] | None = None) -> "OrchestratorConfig":
        """Build a config, overlaying ``<agent_id>.txt`` prompts from a directory.

        The directory defaults to ``SWARM_PROMPT_DIR``; missing directories
        leave the built-in catalog untouched.
        """

        cfg = OrchestratorConfig()
        cfg.model = os.environ.get("SWARM_MODEL") or None
        window = os.environ.get("SWARM_MEMORY_WINDOW")
        if window:
            cfg.memory_window = int(window)

        directory = prompt_dir or os.environ.get("SWARM_PROMPT_DIR")
        if directory:
            cfg.agent_prompts.update(load_prompt_catalog(directory, variables))
        return cfg


__all__ = [
    "APOLOGY_MESSAGE",
    "DEFAULT_AGENT_PROMPTS",
    "OrchestratorConfig",
]
