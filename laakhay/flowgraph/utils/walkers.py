"""Node-level walkers over an execution graph.

Walkers iterate individual nodes from the frontier toward the origin,
independently of chunk boundaries. They back simple queries such as "the
most recent node with this label" and the enclosing-block lookup.
"""

from __future__ import annotations

from collections.abc import Iterator

from ..core.enums import ChunkType
from ..core.exceptions import MalformedGraphError
from ..graph.access import GraphView
from ..graph.execution import ExecutionContext
from ..models.node import FlowNode
from ..runtime.chunking.classifier import ChunkClassifier
from .predicates import NodePredicate


class _NodeWalker:
    """Shared query helpers; subclasses implement iterate()."""

    def __init__(self, execution: ExecutionContext, graph: GraphView | None = None) -> None:
        self._execution = execution
        self._graph = graph or GraphView()

    def iterate(self, start_id: str | None = None) -> Iterator[FlowNode]:
        raise NotImplementedError

    def filter(self, predicate: NodePredicate, start_id: str | None = None) -> list[FlowNode]:
        """All visited nodes matching ``predicate``, in visit order."""
        return [node for node in self.iterate(start_id) if predicate(node)]

    def find_first_match(
        self, predicate: NodePredicate, start_id: str | None = None
    ) -> FlowNode | None:
        """First visited node matching ``predicate``, or None."""
        for node in self.iterate(start_id):
            if predicate(node):
                return node
        return None


class LinearWalker(_NodeWalker):
    """Follows the first parent of each node, from a head to the origin.

    Inside a finished fork only the first branch is visited.
    """

    def iterate(self, start_id: str | None = None) -> Iterator[FlowNode]:
        if start_id is not None:
            node: FlowNode | None = self._graph.resolve(self._execution, start_id)
        else:
            node = self._graph.latest_head(self._execution)
        while node is not None:
            yield node
            parents = self._graph.parents(self._execution, node)
            node = parents[0] if parents else None


class DepthFirstWalker(_NodeWalker):
    """Visits every ancestor once, depth first, parents in declared order.

    Without a start node all frontier heads are walked, newest first.
    """

    def iterate(self, start_id: str | None = None) -> Iterator[FlowNode]:
        execution = self._execution
        if start_id is not None:
            stack = [self._graph.resolve(execution, start_id)]
        else:
            heads = [self._graph.resolve(execution, head) for head in execution.heads]
            # Popped from the end: oldest head pushed first
            stack = sorted(heads, key=lambda n: execution.sequence(n.id))

        visited: set[str] = set()
        while stack:
            node = stack.pop()
            if node.id in visited:
                continue
            visited.add(node.id)
            yield node
            for parent in reversed(self._graph.parents(execution, node)):
                if parent.id not in visited:
                    stack.append(parent)


def fetch_enclosing_blocks(
    execution: ExecutionContext,
    node_id: str,
    *,
    graph: GraphView | None = None,
    classifier: ChunkClassifier | None = None,
) -> list[FlowNode]:
    """Openers of the blocks, forks and branches that contain a node.

    Args:
        execution: Execution the node belongs to
        node_id: Node to look up
        graph: Graph access facade override
        classifier: Classifier deciding which nodes open spans

    Returns:
        Openers, innermost first. A closing node is reported inside the
        spans that enclose its own opener.

    Raises:
        NotFoundError: If node_id is not in the execution
        MalformedGraphError: If an end marker on the way has no start
    """
    graph = graph or GraphView()
    classifier = classifier or ChunkClassifier()

    def opener_of(end: FlowNode) -> FlowNode:
        opener = execution.get_node(end.start_id) if end.start_id else None
        if opener is None:
            raise MalformedGraphError(f"End marker {end.id!r} has no reachable start", node_id=end.id)
        return opener

    node = graph.resolve(execution, node_id)
    if node.is_closing:
        node = opener_of(node)
    current = graph.predecessor(execution, node)

    enclosing: list[FlowNode] = []
    while current is not None:
        if current.is_closing:
            # Closed before the node: skip the whole span
            current = graph.predecessor(execution, opener_of(current))
            continue
        parent = graph.predecessor(execution, current)
        kind = classifier.start_type(current, parent)
        if kind is not None and kind is not ChunkType.LINEAR:
            enclosing.append(current)
        current = parent
    return enclosing
