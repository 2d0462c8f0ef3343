"""Runtime components for chunk discovery."""

from .chunking import (
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

__all__ = [
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
]
