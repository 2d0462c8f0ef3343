"""Chunk data model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.enums import ChunkType
from ..core.exceptions import CrossContextError

if TYPE_CHECKING:
    from ..graph.execution import ExecutionContext
    from .node import FlowNode


class Chunk(BaseModel):
    """A contiguous, classified span of flow nodes.

    Chunks keep identifiers rather than node handles and are resolved on
    demand against an explicitly supplied execution. ``balanced`` is False
    while the span is still running: ``last_node_id`` is then the most
    recently executed node reachable from the first one, not an end marker.
    """

    execution_id: str = Field(..., min_length=1)
    first_node_id: str = Field(..., min_length=1)
    last_node_id: str = Field(..., min_length=1)
    chunk_type: ChunkType
    balanced: bool = True

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_span(self) -> Chunk:
        """Single-node chunks start and end on the same node."""
        if self.chunk_type is ChunkType.NODE and self.first_node_id != self.last_node_id:
            raise ValueError("NODE chunk must start and end on the same node")
        return self

    @classmethod
    def for_node(cls, node: FlowNode) -> Chunk:
        """Create the trivially balanced chunk for one unmarked node."""
        return cls(
            execution_id=node.execution_id,
            first_node_id=node.id,
            last_node_id=node.id,
            chunk_type=ChunkType.NODE,
            balanced=True,
        )

    def first_node(self, execution: ExecutionContext) -> FlowNode:
        """Resolve the first node against ``execution``.

        Raises:
            CrossContextError: If the chunk was produced by another execution
        """
        return self._resolve(execution, self.first_node_id)

    def last_node(self, execution: ExecutionContext) -> FlowNode:
        """Resolve the last node against ``execution``.

        Raises:
            CrossContextError: If the chunk was produced by another execution
        """
        return self._resolve(execution, self.last_node_id)

    def is_balanced_block(self) -> bool:
        """True if the span is structurally closed."""
        return self.balanced

    @property
    def is_single_node(self) -> bool:
        return self.first_node_id == self.last_node_id

    def _resolve(self, execution: ExecutionContext, node_id: str) -> FlowNode:
        if execution.id != self.execution_id:
            raise CrossContextError(
                f"Chunk from execution {self.execution_id!r} resolved against {execution.id!r}",
                expected_execution_id=self.execution_id,
                actual_execution_id=execution.id,
            )
        node = execution.get_node(node_id)
        if node is None or node.execution_id != self.execution_id:
            raise CrossContextError(
                f"Node {node_id!r} does not belong to execution {execution.id!r}",
                expected_execution_id=self.execution_id,
                actual_execution_id=execution.id,
            )
        return node
