"""
Thought Graph - In-process mirror of session nodes and provenance edges

WHAT: Node index plus adjacency map ``source -> {target -> [edges]}``
WHERE: swarm/runtime/orchestration/thought_graph.py - graph cache
WHO: Orchestrator and agent manager after each successful store write
TIME: Inserts O(1) amortised, neighbour lookups O(out-degree)

This is a write-through cache for in-process queries. The persisted graph is
the store's responsibility; nothing here is read back from storage.

Boundary Notes:
- Distinct edge types between the same pair are kept side by side
- Re-adding the same (source, target, type) replaces that one edge
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterator, Optional

from .models import EdgeRecord, NodeRecord


class ThoughtGraph:
    """Directed multigraph of thought nodes keyed by node id."""

    def __init__(self) -> None:
        self._nodes: dict[str, NodeRecord] = {}
        self._adjacency: dict[str, dict[str, list[EdgeRecord]]] = {}

    # ---------------------- nodes ----------------------
    @property
    def nodes(self) -> tuple[NodeRecord, ...]:
        return tuple(self._nodes.values())

    def track(self, node: NodeRecord) -> NodeRecord:
        self._nodes[node.id] = node
        return node

    def has_node(self, node_id: Optional[str]) -> bool:
        return node_id is not None and node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        return self._nodes.get(node_id)

    def nodes_of_type(self, node_type: str) -> list[NodeRecord]:
        return [n for n in self._nodes.values() if n.node_type == node_type]

    # ---------------------- edges ----------------------
    def add_connection(
        self,
        source_id: str,
        target_id: str,
        edge_type: str,
        strength: float = 1.0,
        metadata: dict[str, Any] | None = None,
    ) -> EdgeRecord:
        edge = EdgeRecord(
            source_id=source_id,
            target_id=target_id,
            edge_type=edge_type,
            strength=strength,
            metadata=dict(metadata or {}),
        )
        return self.add_edge(edge)

    def add_edge(self, edge: EdgeRecord) -> EdgeRecord:
        targets = self._adjacency.setdefault(edge.source_id, {})
        bucket = targets.setdefault(edge.target_id, [])
        bucket[:] = [e for e in bucket if e.edge_type != edge.edge_type]
        bucket.append(edge)
        return edge

    def connections_from(self, source_id: str) -> dict[str, list[EdgeRecord]]:
        return {target: list(edges) for target, edges in self._adjacency.get(source_id, {}).items()}

    def edges_between(self, source_id: str, target_id: str) -> list[EdgeRecord]:
        return list(self._adjacency.get(source_id, {}).get(target_id, ()))

    def predecessors(self, target_id: str) -> list[str]:
        return [source for source, targets in self._adjacency.items() if target_id in targets]

    @property
    def edges(self) -> Iterator[EdgeRecord]:
        for targets in self._adjacency.values():
            for bucket in targets.values():
                yield from bucket

    # ---------------------- lifecycle ----------------------
    def clear(self) -> None:
        self._nodes.clear()
        self._adjacency.clear()

    def summarize(self) -> dict[str, Any]:
        """Counts used for logging and telemetry attributes."""

        edges = list(self.edges)
        return {
            "node_count": len(self._nodes),
            "edge_count": len(edges),
            "node_types": dict(Counter(n.node_type for n in self._nodes.values())),
            "edge_types": dict(Counter(e.edge_type for e in edges)),
        }

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes


__all__ = ["ThoughtGraph"]
