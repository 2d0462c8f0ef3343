"""Core components."""

from .enums import ChunkType, Direction, Marker, ScanState
from .exceptions import (
    CrossContextError,
    FlowGraphError,
    MalformedGraphError,
    NotFoundError,
)

__all__ = [
    "ChunkType",
    "Direction",
    "Marker",
    "ScanState",
    "FlowGraphError",
    "NotFoundError",
    "CrossContextError",
    "MalformedGraphError",
]
