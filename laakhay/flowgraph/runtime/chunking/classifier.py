"""Chunk classification from structural evidence at boundary nodes.

The classifier is a pure function of the markers on the first and last
node of a span. It never walks the graph: the scanner tells it whether the
span was closed by a terminator or ran into the frontier.

Rules:
    - A block start opens BLOCK, or PARALLEL_BLOCK when tagged PARALLEL
    - A branch start, or any direct successor of a fork, opens PARALLEL_BRANCH
    - A legacy LABEL opens LINEAR (unless linear labels are disabled)
    - Structural markers take precedence over LABEL on the same node
    - A single node that opens nothing and closes nothing is NODE
    - Anything inconsistent is MIXED
"""

from __future__ import annotations

from ...core.enums import ChunkType
from ...models.node import FlowNode


class ChunkClassifier:
    """Determines chunk types from boundary nodes."""

    def __init__(self, *, linear_labels: bool = True) -> None:
        """Initialize classifier.

        Args:
            linear_labels: Whether LABEL markers open LINEAR chunks
        """
        self._linear_labels = linear_labels

    @property
    def linear_labels(self) -> bool:
        return self._linear_labels

    def start_type(self, node: FlowNode, parent: FlowNode | None = None) -> ChunkType | None:
        """Candidate type of a chunk opened at ``node``, or None if it opens nothing.

        Args:
            node: Candidate first node
            parent: Its single predecessor, if known; a direct successor of a
                fork opens a branch even without a branch marker
        """
        if node.is_branch_start:
            return ChunkType.PARALLEL_BRANCH
        if node.is_block_start:
            return ChunkType.PARALLEL_BLOCK if node.is_fork else ChunkType.BLOCK
        if parent is not None and parent.is_fork:
            return ChunkType.PARALLEL_BRANCH
        if self._linear_labels and node.is_labelled and not node.is_closing:
            return ChunkType.LINEAR
        return None

    def opens_boundary(self, node: FlowNode, parent: FlowNode | None = None) -> bool:
        """Whether ``node`` marks the start of a new chunk."""
        return self.start_type(node, parent) is not None

    def is_closing(self, node: FlowNode) -> bool:
        """Whether ``node`` terminates a span rather than opening one."""
        return node.is_closing

    def pairs(self, start: FlowNode, end: FlowNode) -> bool:
        """Whether ``end`` is the structurally paired terminator of ``start``."""
        if end.start_id != start.id:
            return False
        if start.is_block_start:
            return end.is_block_end and start.is_fork == end.is_join
        return end.is_branch_end and not end.is_block_end

    def classify(
        self,
        first: FlowNode,
        last: FlowNode,
        *,
        balanced: bool = True,
        frontier: bool = False,
        parent: FlowNode | None = None,
    ) -> ChunkType:
        """Classify the span ``[first, last]``.

        Args:
            first: First node of the span
            last: Last node of the span
            balanced: Whether the span ended on a structural terminator
            frontier: Whether an unbalanced span ran into the execution frontier
            parent: Single predecessor of ``first``, if known

        Returns:
            The chunk type
        """
        candidate = self.start_type(first, parent)
        if candidate is None:
            if first.id == last.id and not first.is_closing:
                return ChunkType.NODE
            return ChunkType.MIXED

        if not balanced:
            # No computable end and no frontier fallback
            return candidate if frontier else ChunkType.MIXED

        if candidate is ChunkType.BLOCK or candidate is ChunkType.PARALLEL_BLOCK:
            return candidate if self.pairs(first, last) else ChunkType.MIXED
        if candidate is ChunkType.PARALLEL_BRANCH or candidate is ChunkType.LINEAR:
            return candidate
        raise AssertionError(f"Unhandled chunk type: {candidate!r}")
