"""Unit tests for visitor dispatch."""

from __future__ import annotations

import logging

import pytest

from laakhay.flowgraph.core import ChunkType, Direction, MalformedGraphError, ScanState
from laakhay.flowgraph.runtime.chunking import (
    ChunkCollector,
    ChunkDispatcher,
    ChunkScanner,
    ChunkVisitor,
    FirstMatch,
    VisitDecision,
)


@pytest.fixture
def execution(graph):
    return (
        graph.plain("0")
        .fork("1", "0")
        .branch_start("2", "1")
        .branch_start("3", "1")
        .join("4", "1", "2", "3")
        .block_start("5", "4")
        .block_end("6", "5", "5")
        .build()
    )


@pytest.fixture
def dispatcher(execution) -> ChunkDispatcher:
    return ChunkDispatcher(ChunkScanner(execution))


class RecordingVisitor:
    """Visitor recording chunks, stopping after ``stop_after`` visits."""

    def __init__(self, stop_after: int | None = None) -> None:
        self.seen: list[tuple[str, str]] = []
        self.stop_after = stop_after

    def visit_chunk(self, chunk):
        self.seen.append((chunk.first_node_id, chunk.last_node_id))
        if self.stop_after is not None and len(self.seen) >= self.stop_after:
            return VisitDecision.STOP
        return None


class TestDispatch:
    """Test synchronous dispatch."""

    def test_visits_every_chunk_in_order(self, dispatcher):
        visitor = RecordingVisitor()
        result = dispatcher.dispatch(visitor)

        assert visitor.seen == [("0", "0"), ("2", "2"), ("3", "3"), ("1", "4"), ("5", "6")]
        assert result.chunks_visited == 5
        assert not result.stopped_early
        assert result.state is ScanState.DONE
        assert result.last_chunk.chunk_type is ChunkType.BLOCK

    def test_visitor_protocol(self):
        assert isinstance(RecordingVisitor(), ChunkVisitor)
        assert isinstance(ChunkCollector(), ChunkVisitor)

    def test_early_stop(self, dispatcher):
        """Stopping is not an error; the pass ends DONE with the partial result."""
        visitor = RecordingVisitor(stop_after=2)
        result = dispatcher.dispatch(visitor)

        assert visitor.seen == [("0", "0"), ("2", "2")]
        assert result.chunks_visited == 2
        assert result.stopped_early
        assert result.state is ScanState.DONE

    def test_callable_returning_false_stops(self, dispatcher):
        seen = []

        def handler(chunk):
            seen.append(chunk)
            return chunk.chunk_type is not ChunkType.PARALLEL_BRANCH

        result = dispatcher.dispatch(handler)
        assert [c.first_node_id for c in seen] == ["0", "2"]
        assert result.stopped_early

    def test_backward_dispatch(self, dispatcher):
        visitor = RecordingVisitor()
        dispatcher.dispatch(visitor, direction=Direction.BACKWARD)
        assert visitor.seen == [("5", "6"), ("1", "4"), ("2", "2"), ("3", "3"), ("0", "0")]

    def test_bounded_dispatch(self, dispatcher):
        visitor = RecordingVisitor()
        result = dispatcher.dispatch(visitor, stop_id="4")
        assert visitor.seen[-1] == ("1", "4")
        assert result.state is ScanState.DONE

    def test_rejects_non_visitor(self, dispatcher):
        with pytest.raises(TypeError):
            dispatcher.dispatch(42)

    def test_propagates_malformed_graph(self, graph):
        execution = graph.plain("1").block_end("2", "9", "1").build()
        visitor = RecordingVisitor()
        with pytest.raises(MalformedGraphError):
            ChunkDispatcher(ChunkScanner(execution)).dispatch(visitor)
        assert visitor.seen == [("1", "1")]

    def test_stop_is_logged(self, dispatcher, caplog):
        with caplog.at_level(logging.INFO, logger="laakhay.flowgraph"):
            dispatcher.dispatch(RecordingVisitor(stop_after=1))
        assert "chunk_dispatch_stopped" in [record.getMessage() for record in caplog.records]


class TestAsyncDispatch:
    """Test asynchronous dispatch."""

    @pytest.mark.asyncio
    async def test_awaits_coroutine_handlers(self, dispatcher):
        seen = []

        async def handler(chunk):
            seen.append(chunk.first_node_id)

        result = await dispatcher.adispatch(handler)
        assert seen == ["0", "2", "3", "1", "5"]
        assert result.chunks_visited == 5
        assert result.state is ScanState.DONE

    @pytest.mark.asyncio
    async def test_async_early_stop(self, dispatcher):
        async def handler(chunk):
            return VisitDecision.STOP if chunk.chunk_type is ChunkType.PARALLEL_BLOCK else None

        result = await dispatcher.adispatch(handler)
        assert result.stopped_early
        assert result.last_chunk.first_node_id == "1"

    @pytest.mark.asyncio
    async def test_sync_visitor_accepted(self, dispatcher):
        collector = ChunkCollector()
        result = await dispatcher.adispatch(collector)
        assert len(collector.chunks) == result.chunks_visited == 5


class TestStockVisitors:
    """Test ChunkCollector and FirstMatch."""

    def test_collector_filters_types(self, dispatcher):
        collector = ChunkCollector(types=[ChunkType.PARALLEL_BRANCH])
        dispatcher.dispatch(collector)
        assert [c.first_node_id for c in collector.chunks] == ["2", "3"]

    def test_collector_limit(self, dispatcher):
        collector = ChunkCollector(limit=3)
        result = dispatcher.dispatch(collector)
        assert len(collector.chunks) == 3
        assert result.stopped_early

    def test_collector_invalid_limit(self):
        with pytest.raises(ValueError, match="limit"):
            ChunkCollector(limit=0)

    def test_first_match(self, dispatcher):
        visitor = FirstMatch(lambda chunk: not chunk.is_single_node)
        result = dispatcher.dispatch(visitor)
        assert visitor.match is not None
        assert (visitor.match.first_node_id, visitor.match.last_node_id) == ("1", "4")
        assert result.chunks_visited == 4

    def test_first_match_without_match(self, dispatcher):
        visitor = FirstMatch(lambda chunk: chunk.chunk_type is ChunkType.LINEAR)
        result = dispatcher.dispatch(visitor)
        assert visitor.match is None
        assert not result.stopped_early
