"""Scan configuration and span bookkeeping structures.

This module defines the data structures shared by the classifier, the
scanner and the dispatcher: the scan configuration and the bounds of a span
found by one traversal pass.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...core.enums import Direction


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for chunk scanning.

    Attributes:
        direction: Default traversal direction when a scan does not pass one
        linear_labels: Whether LABEL markers open LINEAR chunks (legacy stage
            convention); when False labelled nodes are plain steps
        verify_stray_ends: Whether a closing node met before its opener is
            checked by walking back to the origin
        trace_transitions: Whether every cursor state change is logged at DEBUG
    """

    direction: Direction = Direction.FORWARD
    linear_labels: bool = True
    verify_stray_ends: bool = True
    trace_transitions: bool = False

    def __post_init__(self) -> None:
        """Validate scan configuration."""
        if not isinstance(self.direction, Direction):
            try:
                object.__setattr__(self, "direction", Direction(self.direction))
            except ValueError:
                raise ValueError(f"Unknown scan direction: {self.direction!r}") from None


@dataclass(frozen=True)
class SpanEnd:
    """Where one traversal pass over a span stopped.

    Attributes:
        last_id: Last node of the span (end marker, frontier or bound)
        closed: Whether the span ended on a structural terminator
        stopped: Whether the requested bound cut the span short
        join_id: Join reached right after a parallel branch, if any
    """

    last_id: str
    closed: bool
    stopped: bool = False
    join_id: str | None = None

    @property
    def frontier(self) -> bool:
        """Whether the span ran into the execution frontier."""
        return not self.closed and not self.stopped
