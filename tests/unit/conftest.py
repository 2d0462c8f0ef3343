"""Shared fixtures for building execution graphs in unit tests."""

from __future__ import annotations

import pytest

from laakhay.flowgraph.core.enums import Marker
from laakhay.flowgraph.graph.execution import FlowExecution
from laakhay.flowgraph.models.node import FlowNode


class GraphFactory:
    """Fluent builder for execution graphs, nodes appended in call order."""

    def __init__(self, execution_id: str = "run-1") -> None:
        self.execution_id = execution_id
        self._nodes: list[FlowNode] = []

    def _add(self, node_id: str, parents: tuple[str, ...], *markers: Marker, **kwargs) -> GraphFactory:
        self._nodes.append(
            FlowNode(
                id=node_id,
                execution_id=self.execution_id,
                parents=parents,
                markers=frozenset(markers),
                **kwargs,
            )
        )
        return self

    def plain(self, node_id: str, *parents: str) -> GraphFactory:
        return self._add(node_id, parents)

    def block_start(self, node_id: str, *parents: str, label: str | None = None) -> GraphFactory:
        markers = (Marker.BLOCK_START, Marker.LABEL) if label else (Marker.BLOCK_START,)
        return self._add(node_id, parents, *markers, label=label)

    def block_end(self, node_id: str, start_id: str, *parents: str) -> GraphFactory:
        return self._add(node_id, parents, Marker.BLOCK_END, start_id=start_id)

    def fork(self, node_id: str, *parents: str, branch_count: int | None = None) -> GraphFactory:
        return self._add(
            node_id, parents, Marker.BLOCK_START, Marker.PARALLEL, branch_count=branch_count
        )

    def join(self, node_id: str, fork_id: str, *parents: str) -> GraphFactory:
        return self._add(node_id, parents, Marker.BLOCK_END, Marker.PARALLEL, start_id=fork_id)

    def branch_start(self, node_id: str, fork_id: str, label: str | None = None) -> GraphFactory:
        return self._add(node_id, (fork_id,), Marker.BRANCH_START, label=label)

    def branch_end(self, node_id: str, start_id: str, parent: str) -> GraphFactory:
        return self._add(node_id, (parent,), Marker.BRANCH_END, start_id=start_id)

    def stage(self, node_id: str, *parents: str, label: str = "stage") -> GraphFactory:
        return self._add(node_id, parents, Marker.LABEL, label=label)

    def build(self) -> FlowExecution:
        return FlowExecution.from_nodes(self.execution_id, self._nodes)


def spans(chunks) -> list[tuple[str, str, str, bool]]:
    """Compact (first, last, type, balanced) view of chunks."""
    return [(c.first_node_id, c.last_node_id, c.chunk_type.value, c.balanced) for c in chunks]


@pytest.fixture
def graph() -> GraphFactory:
    """Builder for an execution named run-1."""
    return GraphFactory("run-1")


@pytest.fixture
def make_graph():
    """Builder factory for additional executions."""
    return GraphFactory


@pytest.fixture
def as_spans():
    """Helper turning chunks into comparable tuples."""
    return spans
