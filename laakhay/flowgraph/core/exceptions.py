"""Custom exception hierarchy."""

from __future__ import annotations


class FlowGraphError(Exception):
    """Base exception for all library errors."""

    pass


class NotFoundError(FlowGraphError, KeyError):
    """Node identifier is absent from the execution it was looked up in."""

    def __init__(self, message: str, node_id: str | None = None, execution_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.execution_id = execution_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


class CrossContextError(FlowGraphError):
    """Identifier or node resolved against an execution that did not produce it.

    Raised when a chunk computed against one execution is resolved against
    another one, e.g. after a pipeline reload.
    """

    def __init__(
        self,
        message: str,
        expected_execution_id: str | None = None,
        actual_execution_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.expected_execution_id = expected_execution_id
        self.actual_execution_id = actual_execution_id


class MalformedGraphError(FlowGraphError):
    """Structural integrity failure in an execution graph.

    Examples: an end marker with no reachable start, a fork whose declared
    branch count does not match its successors.
    """

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id
