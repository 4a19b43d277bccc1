import pytest

from swarm.runtime.orchestration.models import SessionRecord
from swarm.runtime.orchestration.storage import ArangoGraphStore, GraphStore, InMemoryGraphStore


class DummyClient:
    def __init__(self) -> None:
        self.inserted = []
        self.queries = []
        self.collections = []
        self.fail_inserts = False

    def bulk_insert(self, collection: str, docs):  # type: ignore[override]
        if self.fail_inserts:
            raise ConnectionError("arango unavailable")
        self.inserted.append((collection, list(docs)))
        return len(list(docs))

    def execute_query(self, aql: str, bind_vars=None):  # type: ignore[override]
        self.queries.append((aql, dict(bind_vars or {})))
        return []

    def create_collections(self, definitions):  # type: ignore[override]
        self.collections.extend(definitions)


def test_stores_satisfy_protocol():
    assert isinstance(InMemoryGraphStore(), GraphStore)
    assert isinstance(ArangoGraphStore(client=DummyClient()), GraphStore)


def test_arango_schema_declares_unique_edge_index():
    client = DummyClient()
    store = ArangoGraphStore(client=client)
    store.ensure_schema()

    names = {d.name for d in client.collections}
    assert names == {store.SESSIONS, store.NODES, store.EDGES}
    edges = next(d for d in client.collections if d.name == store.EDGES)
    assert edges.indexes[0]["unique"] is True
    assert edges.indexes[0]["fields"] == ["source_node_id", "target_node_id", "connection_type"]


@pytest.mark.asyncio
async def test_arango_writes_documents():
    client = DummyClient()
    store = ArangoGraphStore(client=client)

    session = await store.create_session("learner-1", "main")
    node = await store.create_node(session.id, "learner-1", "user_message", "hi", {"timestamp": "now"})
    edge = await store.connect_nodes(node.id, "other", "context", 0.6, {"reason": "Providing context"})

    assert [collection for collection, _ in client.inserted] == [store.SESSIONS, store.NODES, store.EDGES]
    session_doc = client.inserted[0][1][0]
    assert session_doc["_key"] == session.id
    assert session_doc["agent_id"] == "main"
    node_doc = client.inserted[1][1][0]
    assert node_doc["node_type"] == "user_message"
    assert node_doc["node_content"] == "hi"
    edge_doc = client.inserted[2][1][0]
    assert edge_doc["connection_type"] == "context"
    assert edge_doc["connection_strength"] == pytest.approx(0.6)
    assert edge.key == (node.id, "other", "context")


@pytest.mark.asyncio
async def test_arango_insert_failure_returns_none():
    client = DummyClient()
    client.fail_inserts = True
    store = ArangoGraphStore(client=client)

    assert await store.create_session("learner-1", "main") is None
    assert await store.create_node("s1", "learner-1", "user_message", "hi") is None
    assert await store.connect_nodes("a", "b", "context") is None


@pytest.mark.asyncio
async def test_arango_end_session_parses_updated_document():
    client = DummyClient()
    store = ArangoGraphStore(client=client)
    record = SessionRecord(user_id="learner-1", agent_id="main")

    def fake_query(aql, bind_vars=None):
        doc = record.to_document()
        doc.update(
            ended_at="2025-01-01T10:00:00+00:00",
            session_summary=bind_vars["summary"],
            topics_covered=bind_vars["topics"],
        )
        return [doc]

    client.execute_query = fake_query  # type: ignore[assignment]
    ended = await store.end_session(record.id, "done", ["math", "science"])

    assert ended.id == record.id
    assert ended.summary == "done"
    assert ended.topics_covered == ["math", "science"]
    assert ended.ended_at.year == 2025


@pytest.mark.asyncio
async def test_arango_end_session_missing_document_returns_none():
    store = ArangoGraphStore(client=DummyClient())

    assert await store.end_session("missing", "", []) is None


@pytest.mark.asyncio
async def test_in_memory_edges_are_unique_per_type():
    store = InMemoryGraphStore()

    first = await store.connect_nodes("a", "b", "context", 0.6)
    again = await store.connect_nodes("a", "b", "context", 0.9)
    other = await store.connect_nodes("a", "b", "response", 1.0)

    assert again is first
    assert other is not first
    assert len(store.edges_for("a")) == 2


@pytest.mark.asyncio
async def test_in_memory_rejects_invalid_records():
    store = InMemoryGraphStore()

    assert await store.create_node("s1", "u1", "not_a_type", "x") is None
    assert await store.connect_nodes("a", "b", "context", 1.5) is None
    assert await store.connect_nodes("a", "b", "  ") is None
    assert store.nodes == {}
    assert store.edges == {}


@pytest.mark.asyncio
async def test_in_memory_failure_injection_by_node_type():
    store = InMemoryGraphStore(fail_on=["create_node:agent_response"])

    assert await store.create_node("s1", "u1", "agent_prompt", "p") is not None
    assert await store.create_node("s1", "u1", "agent_response", "r") is None
    assert len(store.list_nodes("s1")) == 1
