"""Execution contexts: the owning containers of flow nodes.

Architecture:
    The pipeline engine owns the graph. This library only needs a read-only
    view of it, described by the ExecutionContext protocol. FlowExecution is
    an in-memory implementation for engines that hand over a node snapshot
    (and for tests).

Design Decisions:
    - Protocol-based contract: any engine object exposing these reads works
    - Insertion order is execution order: ``sequence`` ranks nodes so the
      scanner can pick the most recently executed node of a running span
    - Children are derived from parent links and kept in insertion order,
      which is the order branches were declared at a fork
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Protocol, runtime_checkable

from ..core.exceptions import CrossContextError, MalformedGraphError
from ..models.node import FlowNode

logger = logging.getLogger(__name__)


@runtime_checkable
class ExecutionContext(Protocol):
    """Read-only contract the chunking layer needs from an execution."""

    @property
    def id(self) -> str:
        """Identifier of the execution; node ids are unique only within it."""
        ...

    @property
    def heads(self) -> tuple[str, ...]:
        """Ids of the current frontier nodes, oldest first."""
        ...

    def get_node(self, node_id: str) -> FlowNode | None:
        """Return the node with ``node_id`` or None when absent."""
        ...

    def children(self, node_id: str) -> tuple[str, ...]:
        """Ids of the direct successors of a node, in insertion order."""
        ...

    def sequence(self, node_id: str) -> int:
        """Insertion position of a node; larger means executed later."""
        ...

    def __iter__(self) -> Iterator[FlowNode]:
        ...

    def __len__(self) -> int:
        ...


class FlowExecution:
    """In-memory, append-only snapshot of one execution graph.

    Usage:
        execution = FlowExecution.from_nodes("run-1", [
            FlowNode(id="1", execution_id="run-1"),
            FlowNode(id="2", execution_id="run-1", parents=("1",)),
        ])
    """

    def __init__(self, execution_id: str) -> None:
        if not execution_id:
            raise ValueError("execution_id must be non-empty")
        self._id = execution_id
        self._nodes: dict[str, FlowNode] = {}
        self._children: dict[str, list[str]] = {}
        self._sequence: dict[str, int] = {}

    @classmethod
    def from_nodes(cls, execution_id: str, nodes: Iterable[FlowNode]) -> FlowExecution:
        """Build an execution from nodes given in execution order."""
        execution = cls(execution_id)
        for node in nodes:
            execution.append(node)
        return execution

    @property
    def id(self) -> str:
        return self._id

    @property
    def heads(self) -> tuple[str, ...]:
        return tuple(node_id for node_id in self._nodes if not self._children[node_id])

    def append(self, node: FlowNode) -> None:
        """Record a node; its parents must already be present.

        Raises:
            CrossContextError: If the node belongs to another execution
            MalformedGraphError: If the id is taken or a parent is unknown
        """
        if node.execution_id != self._id:
            raise CrossContextError(
                f"Node {node.id!r} belongs to execution {node.execution_id!r}, not {self._id!r}",
                expected_execution_id=self._id,
                actual_execution_id=node.execution_id,
            )
        if node.id in self._nodes:
            raise MalformedGraphError(f"Duplicate node id {node.id!r}", node_id=node.id)
        for parent_id in node.parents:
            if parent_id not in self._nodes:
                raise MalformedGraphError(
                    f"Node {node.id!r} references unknown parent {parent_id!r}",
                    node_id=node.id,
                )

        self._sequence[node.id] = len(self._nodes)
        self._nodes[node.id] = node
        self._children[node.id] = []
        for parent_id in node.parents:
            self._children[parent_id].append(node.id)

        logger.debug(
            "Node appended",
            extra={"execution_id": self._id, "node_id": node.id, "parents": list(node.parents)},
        )

    def get_node(self, node_id: str) -> FlowNode | None:
        return self._nodes.get(node_id)

    def children(self, node_id: str) -> tuple[str, ...]:
        return tuple(self._children.get(node_id, ()))

    def sequence(self, node_id: str) -> int:
        return self._sequence[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[FlowNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"FlowExecution(id={self._id!r}, nodes={len(self._nodes)})"
