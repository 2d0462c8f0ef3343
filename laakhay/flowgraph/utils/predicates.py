"""Node predicates for walkers and filters."""

from __future__ import annotations

from collections.abc import Callable

from ..core.enums import Marker
from ..models.node import FlowNode

NodePredicate = Callable[[FlowNode], bool]


def has_marker(*markers: Marker) -> NodePredicate:
    """Match nodes carrying all of the given markers."""
    required = frozenset(markers)

    def predicate(node: FlowNode) -> bool:
        return required <= node.markers

    return predicate


def has_label(name: str) -> NodePredicate:
    """Match nodes whose label equals ``name``."""

    def predicate(node: FlowNode) -> bool:
        return node.label == name

    return predicate


def is_block_start(node: FlowNode) -> bool:
    return node.is_block_start


def is_block_end(node: FlowNode) -> bool:
    return node.is_block_end


def is_fork(node: FlowNode) -> bool:
    return node.is_fork


def is_join(node: FlowNode) -> bool:
    return node.is_join


def is_plain(node: FlowNode) -> bool:
    """Match nodes without any marker."""
    return not node.markers
