"""Graph access facade: read-only node lookup within an execution."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from ..core.exceptions import CrossContextError, MalformedGraphError, NotFoundError
from ..models.node import FlowNode
from .execution import ExecutionContext


class GraphView:
    """Resolves identifiers to nodes and steps along links.

    Every lookup takes the execution explicitly; there is no implicit global
    graph. The view holds no state, so one instance can serve concurrent
    passes over the same snapshot.
    """

    def resolve(self, execution: ExecutionContext, node_id: str) -> FlowNode:
        """Resolve ``node_id`` within ``execution``.

        Raises:
            NotFoundError: If no node with that id exists in the execution
        """
        node = execution.get_node(node_id)
        if node is None:
            raise NotFoundError(
                f"Node {node_id!r} not found in execution {execution.id!r}",
                node_id=node_id,
                execution_id=execution.id,
            )
        return node

    @staticmethod
    def id_of(node: FlowNode) -> str:
        return node.id

    def check_owner(self, execution: ExecutionContext, node: FlowNode) -> FlowNode:
        """Return ``node`` if it belongs to ``execution``.

        Raises:
            CrossContextError: If the node was produced by another execution
        """
        if node.execution_id != execution.id:
            raise CrossContextError(
                f"Node {node.id!r} belongs to execution {node.execution_id!r}, not {execution.id!r}",
                expected_execution_id=execution.id,
                actual_execution_id=node.execution_id,
            )
        return node

    def parents(self, execution: ExecutionContext, node: FlowNode) -> list[FlowNode]:
        """Direct predecessors in declared order."""
        return [self.resolve(execution, parent_id) for parent_id in node.parents]

    def children(self, execution: ExecutionContext, node: FlowNode) -> list[FlowNode]:
        """Direct successors in insertion (declaration) order."""
        return [self.resolve(execution, child_id) for child_id in execution.children(node.id)]

    def successor(self, execution: ExecutionContext, node: FlowNode) -> FlowNode | None:
        """Next node on a linear path, or None at the frontier.

        Raises:
            MalformedGraphError: If a node other than a fork has several successors
        """
        child_ids = execution.children(node.id)
        if not child_ids:
            return None
        if len(child_ids) > 1:
            raise MalformedGraphError(
                f"Node {node.id!r} has {len(child_ids)} successors but is not a fork",
                node_id=node.id,
            )
        return self.resolve(execution, child_ids[0])

    def predecessor(self, execution: ExecutionContext, node: FlowNode) -> FlowNode | None:
        """Previous node on a linear path, or None at the origin.

        Raises:
            MalformedGraphError: If a node other than a join has several parents
        """
        if not node.parents:
            return None
        if len(node.parents) > 1:
            raise MalformedGraphError(
                f"Node {node.id!r} has {len(node.parents)} parents but is not a join",
                node_id=node.id,
            )
        return self.resolve(execution, node.parents[0])

    def is_frontier(self, execution: ExecutionContext, node: FlowNode) -> bool:
        """Whether no node has been executed after ``node`` on its path."""
        return not execution.children(node.id)

    def sequence(self, execution: ExecutionContext, node: FlowNode) -> int:
        """Insertion position of ``node``; later means more recently executed."""
        return execution.sequence(node.id)

    def latest(self, execution: ExecutionContext, nodes: Iterable[FlowNode]) -> FlowNode:
        """Most recently executed node among ``nodes``."""
        return max(nodes, key=lambda n: self.sequence(execution, n))

    def origin(self, execution: ExecutionContext) -> FlowNode | None:
        """First node without parents, or None for an empty execution."""
        for node in execution:
            if not node.parents:
                return node
        return None

    def latest_head(self, execution: ExecutionContext) -> FlowNode | None:
        """Most recently executed frontier node, or None for an empty execution."""
        heads = execution.heads
        if not heads:
            return None
        return self.latest(execution, (self.resolve(execution, head) for head in heads))

    def is_ancestor(self, execution: ExecutionContext, ancestor_id: str, node: FlowNode) -> bool:
        """Whether ``ancestor_id`` is reachable walking parents from ``node``."""
        seen: set[str] = set()
        queue = deque(node.parents)
        while queue:
            current_id = queue.popleft()
            if current_id == ancestor_id:
                return True
            if current_id in seen:
                continue
            seen.add(current_id)
            current = execution.get_node(current_id)
            if current is not None:
                queue.extend(current.parents)
        return False
