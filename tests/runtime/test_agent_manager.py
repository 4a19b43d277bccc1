import pytest

from swarm.runtime.orchestration.config import APOLOGY_MESSAGE, OrchestratorConfig
from swarm.runtime.orchestration.orchestrator import SwarmOrchestrator
from swarm.runtime.orchestration.storage import InMemoryGraphStore
from swarm.runtime.orchestration.tools import tool_names


@pytest.mark.asyncio
async def test_activation_is_idempotent(orchestrator, record_events):
    recorder = record_events("agent:activate")
    await orchestrator.start_session("learner-1")

    assert await orchestrator.activate_agent("science")
    first = orchestrator.agents["science"]
    assert await orchestrator.activate_agent("science")

    assert orchestrator.agents["science"] is first
    assert [e["agent_id"] for e in recorder.named("agent:activate")] == ["main", "science"]
    assert len(orchestrator.graph.nodes_of_type("agent_activation")) == 2
    assert "science" in orchestrator.active_session.agents


@pytest.mark.asyncio
async def test_unknown_agent_is_not_activated(orchestrator):
    await orchestrator.start_session("learner-1")

    assert await orchestrator.activate_agent("ghost") is False
    assert orchestrator.active_agent_ids() == ["main"]
    assert "ghost" not in orchestrator.agents


@pytest.mark.asyncio
async def test_activation_links_source_node(orchestrator):
    await orchestrator.start_session("learner-1")
    queued = await orchestrator.process_user_message("Can we paint something?")
    await orchestrator.join()

    assert await orchestrator.activate_agent("creativity", "handoff", queued["message_id"])

    activation = orchestrator.agents["creativity"].activation_node_id
    edge = orchestrator.graph.edges_between(queued["message_id"], activation)[0]
    assert edge.edge_type == "handoff"
    assert edge.strength == pytest.approx(0.8)
    assert edge.metadata == {"reason": "Agent activation"}


@pytest.mark.asyncio
async def test_deactivate_links_lifecycle_and_returns_agent_to_ready(orchestrator, record_events):
    recorder = record_events("agent:deactivate")
    await orchestrator.start_session("learner-1")
    await orchestrator.activate_agent("science")
    activation_id = orchestrator.agents["science"].activation_node_id

    assert await orchestrator.deactivate_agent("science")

    assert orchestrator.agents["science"].status == "ready"
    assert orchestrator.active_agent_ids() == ["main"]
    deactivation = orchestrator.graph.nodes_of_type("agent_deactivation")[0]
    edge = orchestrator.graph.edges_between(activation_id, deactivation.id)[0]
    assert edge.edge_type == "lifecycle"
    assert edge.strength == pytest.approx(1.0)
    assert recorder.named("agent:deactivate")[0]["agent_id"] == "science"


@pytest.mark.asyncio
async def test_deactivate_inactive_agent_is_a_noop(orchestrator, record_events):
    recorder = record_events("agent:deactivate")
    await orchestrator.start_session("learner-1")

    assert await orchestrator.deactivate_agent("creativity") is True
    assert await orchestrator.deactivate_agent("ghost") is True
    assert recorder.named("agent:deactivate") == []
    assert orchestrator.graph.nodes_of_type("agent_deactivation") == []


@pytest.mark.asyncio
async def test_response_from_inactive_agent_fails_without_model_call(orchestrator, model):
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("science", "hello")

    assert response.success is False
    assert response.content == APOLOGY_MESSAGE
    assert response.error == "Agent science is not active"
    assert model.calls == []


@pytest.mark.asyncio
async def test_response_records_history_and_memory(orchestrator, memory):
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("main", "hello there")

    assert response.success is True
    assert response.content == "echo:hello there"
    assert orchestrator.graph.get_node(response.node_id).node_type == "agent_response"

    history = orchestrator.agents["main"].processing_history
    assert len(history) == 1
    assert history[0].response_node_id == response.node_id
    assert history[0].success is True

    turns = await memory.get_memory("learner-1")
    assert [(t["role"], t["content"]) for t in turns] == [
        ("user", "hello there"),
        ("assistant", "echo:hello there"),
    ]


@pytest.mark.asyncio
async def test_history_window_is_sent_to_model(store, memory, model):
    config = OrchestratorConfig(memory_window=2)
    orchestrator = SwarmOrchestrator(config=config, storage=store, memory=memory, model=model)
    await orchestrator.start_session("learner-1")

    await orchestrator.generate_agent_response("main", "one")
    await orchestrator.generate_agent_response("main", "two")

    messages = model.calls[-1]["messages"]
    assert messages[0]["role"] == "system"
    assert messages[1:] == [
        {"role": "user", "content": "one"},
        {"role": "assistant", "content": "echo:one"},
        {"role": "user", "content": "two"},
    ]


@pytest.mark.asyncio
async def test_failing_memory_still_produces_response(store, failing_memory, model):
    orchestrator = SwarmOrchestrator(storage=store, memory=failing_memory, model=model)
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("main", "still there?")

    assert response.success is True
    assert response.content == "echo:still there?"
    assert [m["role"] for m in model.calls[0]["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_model_exception_becomes_apology(store, memory, raising_model, telemetry):
    orchestrator = SwarmOrchestrator(storage=store, memory=memory, model=raising_model, telemetry=telemetry)
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("main", "hello")

    assert response.success is False
    assert response.content == APOLOGY_MESSAGE
    assert response.error == "backend exploded"
    name, attrs = telemetry.spans[-1]
    assert name == "swarm.model_generate"
    assert attrs["success"] is False


@pytest.mark.asyncio
async def test_unsuccessful_model_result_is_still_recorded(orchestrator, model):
    model.fail = True
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("main", "hello")

    assert response.success is False
    assert response.error == "model offline"
    assert response.node_id is not None
    assert orchestrator.agents["main"].processing_history[0].success is False


@pytest.mark.asyncio
async def test_tools_attached_only_when_requested(orchestrator, model):
    await orchestrator.start_session("learner-1")

    await orchestrator.generate_agent_response("main", "plain")
    await orchestrator.generate_agent_response("main", "with tools", options={"use_tools": True})

    assert model.calls[0]["tools"] is None
    assert tool_names(model.calls[1]["tools"]) == tool_names()


@pytest.mark.asyncio
async def test_node_store_failure_degrades_to_unlinked_response(memory, model):
    store = InMemoryGraphStore(fail_on=["create_node:agent_prompt"])
    orchestrator = SwarmOrchestrator(storage=store, memory=memory, model=model)
    await orchestrator.start_session("learner-1")

    response = await orchestrator.generate_agent_response("main", "hello")

    assert response.success is True
    assert response.node_id is not None
    assert list(orchestrator.graph.predecessors(response.node_id)) == []


class ActivationFailingStore(InMemoryGraphStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    async def create_node(self, session_id, user_id, node_type, content, metadata=None):
        if self.broken and node_type == "agent_activation":
            raise RuntimeError("activation write failed")
        return await super().create_node(session_id, user_id, node_type, content, metadata)


@pytest.mark.asyncio
async def test_failed_activation_leaves_registry_unchanged(memory, model):
    store = ActivationFailingStore()
    orchestrator = SwarmOrchestrator(storage=store, memory=memory, model=model)
    await orchestrator.start_session("learner-1")
    store.broken = True

    assert await orchestrator.activate_agent("science") is False

    assert orchestrator.active_agent_ids() == ["main"]
    assert orchestrator.agents["science"].status == "ready"
    assert "science" not in orchestrator.active_session.agents


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "replies",
    [
        ["Atoms are tiny.", "An ecosystem is alive."],
        ["An ecosystem is alive.", "Atoms are tiny."],
    ],
)
async def test_topics_do_not_depend_on_reply_order(orchestrator, model, replies):
    model.replies = list(replies)
    await orchestrator.start_session("learner-1")

    await orchestrator.generate_agent_response("main", "first question")
    await orchestrator.generate_agent_response("main", "second question")

    assert orchestrator.active_session.topics == {"science"}
