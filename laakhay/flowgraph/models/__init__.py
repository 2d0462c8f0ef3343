"""Data models for flow nodes and chunks.

Both models are immutable pydantic models:
    - FlowNode: one recorded step, consumed from the pipeline engine
    - Chunk: a classified span of nodes, produced by the scanner
"""

from .chunk import Chunk
from .node import FlowNode

__all__ = ["Chunk", "FlowNode"]
