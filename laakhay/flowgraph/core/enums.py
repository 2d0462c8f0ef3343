"""Core enumerations shared by the graph model and the chunking runtime.

Architecture:
    Node markers, chunk types, traversal directions and scanner states are
    closed sets. Consumers match on them exhaustively instead of probing
    object types, so every producer format maps onto the same vocabulary.

Key Types:
    - Marker: Structural role flags carried by a flow node
    - ChunkType: Classification tag of a discovered chunk
    - Direction: Forward (origin to frontier) or backward traversal
    - ScanState: Cursor states of a single scanner pass
"""

from __future__ import annotations

from enum import Enum

# Markers that give a node a structural role (LABEL is a legacy tag only)
_STRUCTURAL = frozenset({"block_start", "block_end", "branch_start", "branch_end"})


class Marker(str, Enum):
    """Structural markers a producer may attach to a node.

    A fork is a block start tagged PARALLEL and a join is a block end tagged
    PARALLEL. LABEL is the legacy stage convention: a node that opens a
    linear run without any paired end node.
    """

    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    PARALLEL = "parallel"
    BRANCH_START = "branch_start"
    BRANCH_END = "branch_end"
    LABEL = "label"

    @property
    def is_structural(self) -> bool:
        """Whether the marker pairs with another node (start or end)."""
        return self.value in _STRUCTURAL


class ChunkType(str, Enum):
    """Classification of a chunk.

    NODE: a single atomic step
    BLOCK: a bracketed start/end pair
    LINEAR: a run opened by a legacy label, with no paired end
    PARALLEL_BRANCH: one sibling path inside a fork
    PARALLEL_BLOCK: the fork container, from fork to join
    MIXED: a span matching no single pattern
    """

    NODE = "node"
    BLOCK = "block"
    LINEAR = "linear"
    PARALLEL_BRANCH = "parallel_branch"
    PARALLEL_BLOCK = "parallel_block"
    MIXED = "mixed"

    @property
    def is_block(self) -> bool:
        """Whether balanced chunks of this type end on a paired end marker."""
        return self in (ChunkType.BLOCK, ChunkType.PARALLEL_BLOCK)


class Direction(str, Enum):
    """Traversal direction of a scan."""

    FORWARD = "forward"
    BACKWARD = "backward"


class ScanState(str, Enum):
    """States of the scanner cursor."""

    SEEKING_BOUNDARY = "seeking_boundary"
    IN_CHUNK = "in_chunk"
    AT_PARALLEL = "at_parallel"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.DONE, ScanState.ERROR)
