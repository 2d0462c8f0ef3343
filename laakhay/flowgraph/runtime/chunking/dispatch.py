"""Visitor dispatch: drives a scan and hands each chunk to a consumer.

The dispatcher owns no traversal logic. It pulls chunks from a ChunkScanner
one at a time and invokes the visitor once per chunk, in traversal order.
A visitor stops the pass by returning VisitDecision.STOP (or False); that
is an ordinary outcome, not an error, and the chunks visited up to that
point are a valid partial result.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ...core.enums import ChunkType, Direction, ScanState
from ...models.chunk import Chunk
from .scanner import ChunkScanner
from .telemetry import log_dispatch_stopped


class VisitDecision(Enum):
    """What the dispatcher does after a visit."""

    CONTINUE = "continue"
    STOP = "stop"


@runtime_checkable
class ChunkVisitor(Protocol):
    """Protocol for consumers reacting to discovered chunks.

    Renderers and status aggregators implement ``visit_chunk``; plain
    callables taking a chunk are accepted as well.
    """

    def visit_chunk(self, chunk: Chunk) -> VisitDecision | bool | None:
        """Handle one chunk; return VisitDecision.STOP or False to stop."""
        ...


@dataclass
class DispatchResult:
    """Outcome of a dispatch pass."""

    chunks_visited: int = 0
    stopped_early: bool = False
    last_chunk: Chunk | None = None
    state: ScanState = ScanState.SEEKING_BOUNDARY  # DONE after an early stop


def _handler_of(visitor: ChunkVisitor | Callable[[Chunk], Any]) -> Callable[[Chunk], Any]:
    if isinstance(visitor, ChunkVisitor):
        return visitor.visit_chunk
    if callable(visitor):
        return visitor
    raise TypeError(f"Visitor must implement visit_chunk() or be callable, got {type(visitor).__name__}")


def _wants_stop(decision: Any) -> bool:
    return decision is VisitDecision.STOP or decision is False


class ChunkDispatcher:
    """Single-pass driver feeding scanner output to a visitor.

    Usage:
        dispatcher = ChunkDispatcher(ChunkScanner(execution))
        result = dispatcher.dispatch(renderer)
        if result.stopped_early:
            ...
    """

    def __init__(self, scanner: ChunkScanner) -> None:
        self._scanner = scanner

    @property
    def scanner(self) -> ChunkScanner:
        return self._scanner

    def dispatch(
        self,
        visitor: ChunkVisitor | Callable[[Chunk], Any],
        start_id: str | None = None,
        *,
        stop_id: str | None = None,
        direction: Direction | str | None = None,
    ) -> DispatchResult:
        """Visit every chunk of one scan.

        Args:
            visitor: ChunkVisitor or callable invoked once per chunk
            start_id: Node the scan starts on (see ChunkScanner.scan)
            stop_id: Forward bound of the scan
            direction: Traversal direction

        Returns:
            DispatchResult describing how far the pass got

        Raises:
            MalformedGraphError: If the scan meets a corrupt structure
        """
        handler = _handler_of(visitor)
        result = DispatchResult()
        scan = self._scanner.scan(start_id, stop_id=stop_id, direction=direction)
        try:
            for chunk in scan:
                result.chunks_visited += 1
                result.last_chunk = chunk
                if _wants_stop(handler(chunk)):
                    result.stopped_early = True
                    break
        finally:
            scan.close()
            result.state = scan.state

        if result.stopped_early:
            self._log_stop(result)
        return result

    async def adispatch(
        self,
        visitor: ChunkVisitor | Callable[[Chunk], Any],
        start_id: str | None = None,
        *,
        stop_id: str | None = None,
        direction: Direction | str | None = None,
    ) -> DispatchResult:
        """Visit every chunk of one scan, awaiting asynchronous handlers.

        Same contract as dispatch(); a handler may return an awaitable that
        resolves to its decision.
        """
        handler = _handler_of(visitor)
        result = DispatchResult()
        scan = self._scanner.scan(start_id, stop_id=stop_id, direction=direction)
        try:
            for chunk in scan:
                result.chunks_visited += 1
                result.last_chunk = chunk
                decision = handler(chunk)
                if inspect.isawaitable(decision):
                    decision = await decision
                if _wants_stop(decision):
                    result.stopped_early = True
                    break
        finally:
            scan.close()
            result.state = scan.state

        if result.stopped_early:
            self._log_stop(result)
        return result

    def _log_stop(self, result: DispatchResult) -> None:
        log_dispatch_stopped(
            execution_id=self._scanner.execution.id,
            chunks_visited=result.chunks_visited,
            last_chunk=result.last_chunk,
        )


class ChunkCollector:
    """Visitor collecting chunks, optionally filtered by type.

    Attributes:
        chunks: Collected chunks in visit order
    """

    def __init__(self, types: Iterable[ChunkType] | None = None, *, limit: int | None = None) -> None:
        if limit is not None and limit < 1:
            raise ValueError("limit must be at least 1")
        self._types = frozenset(types) if types is not None else None
        self._limit = limit
        self.chunks: list[Chunk] = []

    def visit_chunk(self, chunk: Chunk) -> VisitDecision:
        if self._types is None or chunk.chunk_type in self._types:
            self.chunks.append(chunk)
        if self._limit is not None and len(self.chunks) >= self._limit:
            return VisitDecision.STOP
        return VisitDecision.CONTINUE


class FirstMatch:
    """Visitor stopping at the first chunk accepted by a predicate."""

    def __init__(self, predicate: Callable[[Chunk], bool]) -> None:
        self._predicate = predicate
        self.match: Chunk | None = None

    def visit_chunk(self, chunk: Chunk) -> VisitDecision:
        if self._predicate(chunk):
            self.match = chunk
            return VisitDecision.STOP
        return VisitDecision.CONTINUE
