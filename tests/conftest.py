from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from swarm.runtime.orchestration.memory import InMemoryMemoryService
from swarm.runtime.orchestration.model_engine import ChatResult
from swarm.runtime.orchestration.orchestrator import SwarmOrchestrator
from swarm.runtime.orchestration.storage import InMemoryGraphStore
from swarm.runtime.orchestration.telemetry import TelemetryClient


class FakeModel:
    """Echoes the last user message; optionally scripted replies or a delay."""

    def __init__(
        self,
        replies: Optional[List[str]] = None,
        *,
        delay: float = 0.0,
        fail: bool = False,
    ) -> None:
        self.replies = list(replies or [])
        self.delay = delay
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    async def create_chat_completion(
        self,
        messages,
        *,
        model=None,
        tools=None,
        tool_choice=None,
        user_id=None,
    ) -> ChatResult:
        self.calls.append({"messages": list(messages), "model": model, "tools": tools, "user_id": user_id})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            return ChatResult(content="sorry", success=False, error="model offline")
        if self.replies:
            return ChatResult(content=self.replies.pop(0), success=True)
        return ChatResult(content=f"echo:{messages[-1]['content']}", success=True)


class RaisingModel:
    async def create_chat_completion(self, messages, **kwargs) -> ChatResult:
        raise RuntimeError("backend exploded")


class FailingMemory:
    async def add_memory(self, user_id, message):
        raise ConnectionError("memory down")

    async def get_memory(self, user_id, *, limit=10):
        raise ConnectionError("memory down")


class CaptureTelemetryClient(TelemetryClient):
    def __init__(self) -> None:
        self.spans: list[tuple[str, dict]] = []

    def emit_span(self, name: str, attributes: dict) -> None:
        self.spans.append((name, attributes))


class EventRecorder:
    def __init__(self, orchestrator: SwarmOrchestrator, *names: str) -> None:
        self.events: list[tuple[str, dict]] = []
        for name in names:
            orchestrator.on(name, lambda data, name=name: self.events.append((name, data)))

    def named(self, name: str) -> list[dict]:
        return [data for event, data in self.events if event == name]


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def memory() -> InMemoryMemoryService:
    return InMemoryMemoryService()


@pytest.fixture
def model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def telemetry() -> CaptureTelemetryClient:
    return CaptureTelemetryClient()


@pytest.fixture
def orchestrator(store, memory, model, telemetry) -> SwarmOrchestrator:
    return SwarmOrchestrator(storage=store, memory=memory, model=model, telemetry=telemetry)


@pytest.fixture
def failing_memory() -> FailingMemory:
    return FailingMemory()


@pytest.fixture
def raising_model() -> RaisingModel:
    return RaisingModel()


@pytest.fixture
def record_events(orchestrator):
    def _record(*names: str) -> EventRecorder:
        return EventRecorder(orchestrator, *names)

    return _record
