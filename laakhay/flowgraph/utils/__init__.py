"""Utility functions."""

from .predicates import (
    NodePredicate,
    has_label,
    has_marker,
    is_block_end,
    is_block_start,
    is_fork,
    is_join,
    is_plain,
)
from .walkers import DepthFirstWalker, LinearWalker, fetch_enclosing_blocks

__all__ = [
    "NodePredicate",
    "has_marker",
    "has_label",
    "is_block_start",
    "is_block_end",
    "is_fork",
    "is_join",
    "is_plain",
    "LinearWalker",
    "DepthFirstWalker",
    "fetch_enclosing_blocks",
]
