"""Chunking layer: classifying and discovering chunks in execution graphs.

This module partitions an execution graph into classified spans (chunks)
and exposes them to consumers through a visitor protocol.

Architecture:
    The chunking layer consists of:
    - definitions.py: Scan configuration and span bookkeeping (ScanConfig, SpanEnd)
    - classifier.py: Chunk type rules for boundary nodes (ChunkClassifier)
    - scanner.py: Forward/backward chunk discovery (ChunkScanner, ScanPass)
    - dispatch.py: Visitor protocol and driver (ChunkDispatcher)
    - telemetry.py: Structured logging

Usage:
    scanner = ChunkScanner(execution)
    collector = ChunkCollector(types=[ChunkType.PARALLEL_BRANCH])
    ChunkDispatcher(scanner).dispatch(collector)
"""

from __future__ import annotations

from .classifier import ChunkClassifier
from .definitions import ScanConfig, SpanEnd
from .dispatch import (
    ChunkCollector,
    ChunkDispatcher,
    ChunkVisitor,
    DispatchResult,
    FirstMatch,
    VisitDecision,
)
from .scanner import ChunkScanner, ScanPass

__all__ = [
    "ScanConfig",
    "SpanEnd",
    "ChunkClassifier",
    "ChunkScanner",
    "ScanPass",
    "ChunkDispatcher",
    "ChunkVisitor",
    "ChunkCollector",
    "FirstMatch",
    "DispatchResult",
    "VisitDecision",
]
