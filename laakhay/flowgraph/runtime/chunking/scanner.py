"""Chunk discovery over an execution graph.

Architecture:
    A scan is one pass of a cursor over the graph, forward from a start node
    toward the frontier or backward from an end node toward the origin. The
    cursor moves through the states of ScanState; at every candidate
    boundary the ChunkClassifier decides what kind of span opens or closes.

    Forward passes walk each span to its terminator. Plain blocks absorb the
    nodes and blocks nested in them; forks are always expanded: one
    independent walk per branch, in declaration order, then a single
    PARALLEL_BLOCK chunk once the join is known. Inner chunks are emitted
    before the chunk that contains them.

    Backward passes walk the spine of the graph, jumping from each closing
    node to its opener, and fold nodes found inside a still-open span into
    that span. Every collected opener is then expanded forward, emitting the
    container before its inner chunks so that the output runs newest first.

Design Decisions:
    - Generators: chunks are produced lazily and never retained, except
      while a backward pass orders the chunks of one span
    - Nested spans are walked with an explicit stack of frames, so nesting
      depth is bounded by memory, not by the interpreter's recursion limit
    - Per-pass state lives in ScanPass, the frame stack and call locals; the
      scanner only holds configuration, so passes over one snapshot can run
      concurrently
    - Unbalanced spans are a normal outcome, reported through ``balanced``
    - Structural corruption raises MalformedGraphError; nothing is repaired

See Also:
    - ChunkClassifier: Classification rules for span boundaries
    - ChunkDispatcher: Drives a scan and feeds chunks to a visitor
"""

from __future__ import annotations

from collections.abc import Generator, Iterator
from dataclasses import dataclass, field

from ...core.enums import ChunkType, Direction, ScanState
from ...core.exceptions import MalformedGraphError
from ...graph.access import GraphView
from ...graph.execution import ExecutionContext
from ...models.chunk import Chunk
from ...models.node import FlowNode
from .classifier import ChunkClassifier
from .definitions import ScanConfig, SpanEnd
from .telemetry import (
    log_chunk_emitted,
    log_scan_complete,
    log_scan_error,
    log_scan_started,
    log_state_transition,
)

_Walk = Generator[Chunk, None, SpanEnd]


class _Cursor:
    """Cursor state of a single pass."""

    def __init__(self, execution_id: str, *, trace: bool, preorder: bool) -> None:
        self.execution_id = execution_id
        self.trace = trace
        self.preorder = preorder
        self.state = ScanState.SEEKING_BOUNDARY

    def move(self, state: ScanState, node_id: str | None = None) -> None:
        if state is self.state:
            return
        if self.trace:
            log_state_transition(
                execution_id=self.execution_id,
                node_id=node_id,
                previous=self.state,
                current=state,
            )
        self.state = state


@dataclass
class _Frame:
    """One span being walked.

    ``chunks`` buffers the span's output in pre-order passes; post-order
    passes emit directly and leave it empty.
    """

    opener: FlowNode
    kind: ChunkType
    emit_self: bool
    started: bool = False
    chunks: list[Chunk] = field(default_factory=list)


@dataclass
class _BodyFrame(_Frame):
    """Block, branch or linear run: walked node by node."""

    fork: FlowNode | None = None
    last: FlowNode | None = None
    node: FlowNode | None = None  # next node, or the opener of a nested span


@dataclass
class _ParallelFrame(_Frame):
    """Fork: one branch frame at a time, then the join."""

    branches: list[FlowNode] = field(default_factory=list)
    ends: list[SpanEnd] = field(default_factory=list)


class ScanPass(Iterator[Chunk]):
    """Iterator over the chunks of one scan.

    ``state`` reports the cursor state: DONE once the pass completed or was
    closed early, ERROR after a structural failure.
    """

    def __init__(self, cursor: _Cursor, chunks: Iterator[Chunk]) -> None:
        self._cursor = cursor
        self._chunks = chunks

    @property
    def state(self) -> ScanState:
        return self._cursor.state

    def __iter__(self) -> ScanPass:
        return self

    def __next__(self) -> Chunk:
        return next(self._chunks)

    def close(self) -> None:
        """Stop the pass early; a pass that did not fail counts as done."""
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
        if not self._cursor.state.is_terminal:
            self._cursor.move(ScanState.DONE)


class ChunkScanner:
    """Discovers chunks in one execution.

    Usage:
        scanner = ChunkScanner(execution)
        for chunk in scanner.scan():
            ...
        newest_first = list(scanner.scan(direction=Direction.BACKWARD))
    """

    def __init__(
        self,
        execution: ExecutionContext,
        *,
        config: ScanConfig | None = None,
        classifier: ChunkClassifier | None = None,
        graph: GraphView | None = None,
    ) -> None:
        """Initialize chunk scanner.

        Args:
            execution: Execution snapshot to scan
            config: Scan configuration (defaults to ScanConfig())
            classifier: Classifier override (defaults to one built from config)
            graph: Graph access facade override
        """
        self._execution = execution
        self._config = config or ScanConfig()
        self._classifier = classifier or ChunkClassifier(linear_labels=self._config.linear_labels)
        self._graph = graph or GraphView()

    @property
    def execution(self) -> ExecutionContext:
        return self._execution

    @property
    def config(self) -> ScanConfig:
        return self._config

    @property
    def classifier(self) -> ChunkClassifier:
        return self._classifier

    def scan(
        self,
        start_id: str | None = None,
        *,
        stop_id: str | None = None,
        direction: Direction | str | None = None,
    ) -> ScanPass:
        """Start a scan.

        Args:
            start_id: Node the cursor starts on. Forward scans default to the
                origin, backward scans to the most recently executed head.
            stop_id: Forward only: node at which the scan ends
            direction: Traversal direction (defaults to the configured one)

        Returns:
            ScanPass yielding chunks in traversal order

        Raises:
            NotFoundError: If start_id or stop_id is not in the execution
            ValueError: If stop_id is combined with a backward scan
        """
        direction = Direction(direction) if direction is not None else self._config.direction
        execution = self._execution

        if stop_id is not None:
            if direction is Direction.BACKWARD:
                raise ValueError("stop_id is only supported for forward scans")
            self._graph.resolve(execution, stop_id)

        if start_id is not None:
            start = self._graph.resolve(execution, start_id)
        elif direction is Direction.FORWARD:
            start = self._graph.origin(execution)
        else:
            start = self._graph.latest_head(execution)

        cursor = _Cursor(
            execution.id,
            trace=self._config.trace_transitions,
            preorder=direction is Direction.BACKWARD,
        )
        log_scan_started(
            execution_id=execution.id,
            direction=direction,
            start_id=start.id if start is not None else None,
            stop_id=stop_id,
        )
        return ScanPass(cursor, self._run(cursor, direction, start, stop_id))

    def chunks(self, start_id: str | None = None, **kwargs) -> list[Chunk]:
        """Collect the chunks of a complete scan."""
        return list(self.scan(start_id, **kwargs))

    def _run(
        self,
        cursor: _Cursor,
        direction: Direction,
        start: FlowNode | None,
        stop_id: str | None,
    ) -> Iterator[Chunk]:
        emitted = 0
        if start is None:
            walk: Iterator[Chunk] = iter(())
        elif direction is Direction.FORWARD:
            walk = self._scan_forward(cursor, start, stop_id)
        else:
            walk = self._scan_backward(cursor, start)

        try:
            for chunk in walk:
                emitted += 1
                log_chunk_emitted(chunk=chunk)
                yield chunk
        except MalformedGraphError as e:
            cursor.move(ScanState.ERROR, e.node_id)
            log_scan_error(
                execution_id=self._execution.id,
                node_id=e.node_id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise

        cursor.move(ScanState.DONE)
        log_scan_complete(
            execution_id=self._execution.id,
            direction=direction,
            chunks_emitted=emitted,
        )

    # Forward traversal

    def _scan_forward(
        self, cursor: _Cursor, start: FlowNode, stop_id: str | None
    ) -> Iterator[Chunk]:
        execution = self._execution
        node: FlowNode | None = start

        while node is not None:
            cursor.move(ScanState.SEEKING_BOUNDARY, node.id)
            kind = self._classifier.start_type(node, self._parent_of(node))

            if kind is not None:
                span = yield from self._expand(cursor, node, kind, stop_id)
                if not span.closed:
                    # Frontier or requested bound reached inside the span
                    return
                end = self._graph.resolve(execution, span.last_id)
            else:
                if self._classifier.is_closing(node):
                    self._check_stray_end(node)
                    yield self._chunk(node, SpanEnd(node.id, closed=True))
                else:
                    yield Chunk.for_node(node)
                end = node

            if end.id == stop_id:
                return
            node = self._graph.successor(execution, end)

    def _expand(
        self,
        cursor: _Cursor,
        opener: FlowNode,
        kind: ChunkType,
        stop_id: str | None,
    ) -> _Walk:
        """Walk the span opened at ``opener`` and everything nested in it.

        Frames are pushed for nested forks (always emitted) and nested
        blocks (absorbed, only their inner forks are emitted). A finished
        frame hands its SpanEnd to the frame below it.
        """
        stack: list[_Frame] = [self._frame(opener, kind, emit_self=True)]
        result: SpanEnd | None = None

        while True:
            frame = stack[-1]
            if isinstance(frame, _ParallelFrame):
                outcome = self._advance_parallel(cursor, frame, result, stop_id)
            else:
                outcome = self._advance_body(cursor, frame, result, stop_id)
            result = None

            if isinstance(outcome, _Frame):
                stack.append(outcome)
                continue

            stack.pop()
            if frame.emit_self:
                chunk = self._chunk(frame.opener, outcome)
                if cursor.preorder:
                    frame.chunks.insert(0, chunk)
                else:
                    yield chunk
            if not stack:
                yield from frame.chunks
                return outcome
            stack[-1].chunks.extend(frame.chunks)
            result = outcome

    def _frame(self, opener: FlowNode, kind: ChunkType, *, emit_self: bool) -> _Frame:
        if kind is ChunkType.PARALLEL_BLOCK:
            return _ParallelFrame(opener, kind, emit_self)
        return _BodyFrame(opener, kind, emit_self)

    def _advance_body(
        self,
        cursor: _Cursor,
        frame: _BodyFrame,
        result: SpanEnd | None,
        stop_id: str | None,
    ) -> SpanEnd | _Frame:
        """Walk a block, branch or linear run until it ends or a nested span opens."""
        execution = self._execution
        classifier = self._classifier
        opener = frame.opener

        if not frame.started:
            frame.started = True
            if frame.kind is ChunkType.PARALLEL_BRANCH:
                frame.fork = self._graph.predecessor(execution, opener)
                if frame.fork is None or not frame.fork.is_fork:
                    raise MalformedGraphError(
                        f"Branch start {opener.id!r} does not follow a fork", node_id=opener.id
                    )
            cursor.move(ScanState.IN_CHUNK, opener.id)
            if opener.id == stop_id:
                return SpanEnd(opener.id, closed=False, stopped=True)
            frame.last = opener
            frame.node = self._graph.successor(execution, opener)
        elif result is not None:
            # Nested span opened at frame.node has finished
            cursor.move(ScanState.IN_CHUNK, frame.node.id)
            frame.last = self._graph.resolve(execution, result.last_id)
            if not result.closed:
                return SpanEnd(frame.last.id, closed=False, stopped=result.stopped)
            if frame.last.id == stop_id:
                return SpanEnd(frame.last.id, closed=False, stopped=True)
            frame.node = self._graph.successor(execution, frame.last)

        fork = frame.fork
        while frame.node is not None:
            node = frame.node
            if classifier.pairs(opener, node):
                return SpanEnd(node.id, closed=True)
            if fork is not None and classifier.pairs(fork, node):
                # Branch without its own end marker, closed by the join
                return SpanEnd(frame.last.id, closed=True, join_id=node.id)
            if frame.kind is ChunkType.LINEAR and (node.is_labelled or classifier.is_closing(node)):
                # Next legacy label, or the enclosing span closes
                return SpanEnd(frame.last.id, closed=True)

            nested = classifier.start_type(node)
            if nested is ChunkType.PARALLEL_BLOCK:
                cursor.move(ScanState.AT_PARALLEL, node.id)
                return self._frame(node, nested, emit_self=True)
            if nested is ChunkType.BLOCK:
                return self._frame(node, nested, emit_self=False)
            if classifier.is_closing(node) or node.is_branch_start:
                raise MalformedGraphError(
                    f"Node {node.id!r} does not close the span opened at {opener.id!r}",
                    node_id=node.id,
                )

            frame.last = node
            if node.id == stop_id:
                return SpanEnd(node.id, closed=False, stopped=True)
            frame.node = self._graph.successor(execution, node)

        return SpanEnd(frame.last.id, closed=False)

    def _advance_parallel(
        self,
        cursor: _Cursor,
        frame: _ParallelFrame,
        result: SpanEnd | None,
        stop_id: str | None,
    ) -> SpanEnd | _Frame:
        """Open the next branch of a fork, or resolve the join once all are walked."""
        execution = self._execution
        fork = frame.opener

        if not frame.started:
            frame.started = True
            cursor.move(ScanState.AT_PARALLEL, fork.id)
            branches = self._graph.children(execution, fork)
            declared = fork.branch_count
            if declared == 0 or (declared is not None and branches and len(branches) != declared):
                raise MalformedGraphError(
                    f"Fork {fork.id!r} declares {declared} branches but has {len(branches)}",
                    node_id=fork.id,
                )
            if fork.id == stop_id:
                return SpanEnd(fork.id, closed=False, stopped=True)
            if not branches:
                # Fork is the frontier: no branch has started yet
                return SpanEnd(fork.id, closed=False)
            frame.branches = branches
        elif result is not None:
            frame.ends.append(result)
            cursor.move(ScanState.AT_PARALLEL, fork.id)
            if stop_id is not None and (result.stopped or result.last_id == stop_id):
                # Later branches lie past the bound
                return SpanEnd(stop_id, closed=False, stopped=True)

        if len(frame.ends) < len(frame.branches):
            branch = frame.branches[len(frame.ends)]
            if self._classifier.start_type(branch, fork) is not ChunkType.PARALLEL_BRANCH:
                raise MalformedGraphError(
                    f"Successor {branch.id!r} of fork {fork.id!r} is not a branch start",
                    node_id=branch.id,
                )
            return self._frame(branch, ChunkType.PARALLEL_BRANCH, emit_self=True)
        return self._resolve_join(fork, frame.ends)

    def _resolve_join(self, fork: FlowNode, ends: list[SpanEnd]) -> SpanEnd:
        execution = self._execution
        classifier = self._classifier

        joins: set[str] = set()
        for span in ends:
            if span.join_id is not None:
                joins.add(span.join_id)
            elif span.closed:
                after = self._graph.successor(execution, self._graph.resolve(execution, span.last_id))
                if after is None:
                    continue
                if not classifier.pairs(fork, after):
                    raise MalformedGraphError(
                        f"Branch end {span.last_id!r} is not followed by the join of fork {fork.id!r}",
                        node_id=span.last_id,
                    )
                joins.add(after.id)

        if joins:
            if len(joins) > 1 or not all(span.closed for span in ends):
                raise MalformedGraphError(
                    f"Fork {fork.id!r} is joined while a branch is still open",
                    node_id=fork.id,
                )
            return SpanEnd(joins.pop(), closed=True)

        tails = (self._graph.resolve(execution, span.last_id) for span in ends)
        return SpanEnd(self._graph.latest(execution, tails).id, closed=False)

    def _check_stray_end(self, node: FlowNode) -> None:
        """Verify a closing node whose opener precedes the scan start."""
        opener = self._opener_of(node)
        if self._config.verify_stray_ends and not self._graph.is_ancestor(
            self._execution, opener.id, node
        ):
            raise MalformedGraphError(
                f"Start {opener.id!r} of end marker {node.id!r} is not reachable from it",
                node_id=node.id,
            )

    # Backward traversal

    def _scan_backward(self, cursor: _Cursor, end: FlowNode) -> Iterator[Chunk]:
        execution = self._execution
        classifier = self._classifier
        stop_id = None if self._graph.is_frontier(execution, end) else end.id

        # (opener or plain node, closing node the opener must reach), newest first
        anchors: list[tuple[FlowNode, str | None]] = []
        label_mark = 0
        node: FlowNode | None = end

        while node is not None:
            cursor.move(ScanState.SEEKING_BOUNDARY, node.id)
            if classifier.is_closing(node):
                opener = self._opener_of(node)
                anchors.append((opener, node.id))
                if opener.is_labelled:
                    label_mark = len(anchors)
                node = self._graph.predecessor(execution, opener)
                continue

            kind = classifier.start_type(node, self._parent_of(node))
            if kind is None:
                anchors.append((node, None))
            elif kind is ChunkType.LINEAR:
                # Everything collected since the last label belongs to this run
                del anchors[label_mark:]
                anchors.append((node, None))
                label_mark = len(anchors)
            else:
                # Opener without a collected end: the walk started inside it
                anchors.clear()
                anchors.append((node, None))
                label_mark = 1 if node.is_labelled else 0
            node = self._graph.predecessor(execution, node)

        for anchor, closing_id in anchors:
            kind = classifier.start_type(anchor, self._parent_of(anchor))
            if kind is None:
                yield Chunk.for_node(anchor)
                continue
            span = yield from self._expand(cursor, anchor, kind, stop_id)
            if closing_id is not None and span.last_id != closing_id:
                raise MalformedGraphError(
                    f"Span opened at {anchor.id!r} does not end at its end marker {closing_id!r}",
                    node_id=closing_id,
                )

    # Helpers

    def _opener_of(self, node: FlowNode) -> FlowNode:
        """Resolve and check the opener paired with a closing node."""
        execution = self._execution
        opener = execution.get_node(node.start_id) if node.start_id else None
        if opener is None:
            raise MalformedGraphError(
                f"End marker {node.id!r} has no reachable start", node_id=node.id
            )
        if not self._classifier.pairs(opener, node):
            raise MalformedGraphError(
                f"End marker {node.id!r} does not pair with {opener.id!r}", node_id=node.id
            )
        if execution.sequence(opener.id) >= execution.sequence(node.id):
            raise MalformedGraphError(
                f"Start {opener.id!r} of end marker {node.id!r} was recorded after it",
                node_id=node.id,
            )
        return opener

    def _parent_of(self, node: FlowNode) -> FlowNode | None:
        if len(node.parents) != 1:
            return None
        return self._graph.resolve(self._execution, node.parents[0])

    def _chunk(self, first: FlowNode, span: SpanEnd) -> Chunk:
        last = self._graph.resolve(self._execution, span.last_id)
        chunk_type = self._classifier.classify(
            first,
            last,
            balanced=span.closed,
            frontier=span.frontier,
            parent=self._parent_of(first),
        )
        return Chunk(
            execution_id=self._execution.id,
            first_node_id=first.id,
            last_node_id=last.id,
            chunk_type=chunk_type,
            balanced=span.closed,
        )
