"""Laakhay Flowgraph - Chunk discovery for pipeline execution graphs."""

from .core import (
    ChunkType,
    CrossContextError,
    Direction,
    FlowGraphError,
    MalformedGraphError,
    Marker,
    NotFoundError,
    ScanState,
)
from .graph import ExecutionContext, FlowExecution, GraphView
from .models import Chunk, FlowNode
from .runtime.chunking import (
    ChunkClassifier,
    ChunkCollector,
    ChunkDispatcher,
    ChunkScanner,
    ChunkVisitor,
    DispatchResult,
    FirstMatch,
    ScanConfig,
    ScanPass,
    VisitDecision,
)
from .utils import DepthFirstWalker, LinearWalker, fetch_enclosing_blocks

__version__ = "0.1.0"

__all__ = [
    # Core
    "ChunkType",
    "Direction",
    "Marker",
    "ScanState",
    # Exceptions
    "FlowGraphError",
    "NotFoundError",
    "CrossContextError",
    "MalformedGraphError",
    # Graph access
    "ExecutionContext",
    "FlowExecution",
    "GraphView",
    # Models
    "Chunk",
    "FlowNode",
    # Chunking
    "ChunkClassifier",
    "ChunkScanner",
    "ScanPass",
    "ScanConfig",
    "ChunkDispatcher",
    "ChunkVisitor",
    "ChunkCollector",
    "FirstMatch",
    "DispatchResult",
    "VisitDecision",
    # Walkers
    "LinearWalker",
    "DepthFirstWalker",
    "fetch_enclosing_blocks",
]
