"""Execution graph access.

The pipeline engine supplies an immutable execution; GraphView resolves
node identifiers against it and steps along predecessor/successor links.
"""

from .access import GraphView
from .execution import ExecutionContext, FlowExecution

__all__ = ["ExecutionContext", "FlowExecution", "GraphView"]
