"""Flow node data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.enums import Marker


class FlowNode(BaseModel):
    """One recorded step of an execution graph.

    Nodes are created by the pipeline engine and never mutated here. Links
    to predecessors are stored as identifiers local to the owning execution.
    """

    id: str = Field(..., min_length=1)
    execution_id: str = Field(..., min_length=1)
    parents: tuple[str, ...] = ()
    markers: frozenset[Marker] = frozenset()
    start_id: str | None = None  # paired opener, set on closing nodes
    branch_count: int | None = Field(default=None, ge=0)  # declared by forks
    label: str | None = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("parents")
    @classmethod
    def validate_parents(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty and duplicate parent ids."""
        if any(not parent for parent in v):
            raise ValueError("parent ids must be non-empty")
        if len(set(v)) != len(v):
            raise ValueError("parent ids must be unique")
        return v

    @model_validator(mode="after")
    def validate_markers(self) -> FlowNode:
        """Check marker combinations that can never be paired."""
        if Marker.PARALLEL in self.markers and not (
            Marker.BLOCK_START in self.markers or Marker.BLOCK_END in self.markers
        ):
            raise ValueError("PARALLEL must tag a block start or a block end")
        if self.branch_count is not None and not self.is_fork:
            raise ValueError("branch_count is only meaningful on a fork")
        return self

    def has(self, marker: Marker) -> bool:
        """Whether the node carries the given marker."""
        return marker in self.markers

    @property
    def is_block_start(self) -> bool:
        return Marker.BLOCK_START in self.markers

    @property
    def is_block_end(self) -> bool:
        return Marker.BLOCK_END in self.markers

    @property
    def is_fork(self) -> bool:
        return self.is_block_start and Marker.PARALLEL in self.markers

    @property
    def is_join(self) -> bool:
        return self.is_block_end and Marker.PARALLEL in self.markers

    @property
    def is_branch_start(self) -> bool:
        return Marker.BRANCH_START in self.markers

    @property
    def is_branch_end(self) -> bool:
        return Marker.BRANCH_END in self.markers

    @property
    def is_labelled(self) -> bool:
        return Marker.LABEL in self.markers

    @property
    def is_closing(self) -> bool:
        """Whether the node ends a span opened elsewhere."""
        return self.is_block_end or self.is_branch_end

    @property
    def is_structural(self) -> bool:
        """Whether any marker pairs the node with another node."""
        return any(marker.is_structural for marker in self.markers)
