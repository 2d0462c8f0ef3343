"""Unit tests for backward chunk scanning."""

from __future__ import annotations

import pytest

from laakhay.flowgraph.core import Direction, MalformedGraphError, ScanState
from laakhay.flowgraph.graph import FlowExecution
from laakhay.flowgraph.runtime.chunking import ChunkScanner, ScanConfig


def scan_back(execution, *args, **kwargs):
    return ChunkScanner(execution).chunks(*args, direction=Direction.BACKWARD, **kwargs)


class TestScenarios:
    """Reference scenarios walked from the frontier."""

    def test_single_unmarked_node(self, graph, as_spans):
        execution = graph.plain("5").build()
        assert as_spans(scan_back(execution)) == [("5", "5", "node", True)]

    def test_closed_block(self, graph, as_spans):
        execution = graph.block_start("1").plain("2", "1").block_end("3", "1", "2").build()
        assert as_spans(scan_back(execution)) == [("1", "3", "block", True)]

    def test_running_block(self, graph, as_spans):
        """The frontier node is folded into the block that is still open."""
        execution = graph.block_start("1").plain("2", "1").build()
        assert as_spans(scan_back(execution)) == [("1", "2", "block", False)]

    def test_fork_with_two_branches(self, graph, as_spans):
        """The parallel block comes first, then its branches in declaration order."""
        execution = (
            graph.fork("1")
            .branch_start("2", "1")
            .branch_start("3", "1")
            .plain("4", "2")
            .plain("5", "3")
            .join("6", "1", "4", "5")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("1", "6", "parallel_block", True),
            ("2", "4", "parallel_branch", True),
            ("3", "5", "parallel_branch", True),
        ]

    def test_empty_execution(self):
        scan_pass = ChunkScanner(FlowExecution("run-1")).scan(direction="backward")
        assert list(scan_pass) == []
        assert scan_pass.state is ScanState.DONE


class TestOrdering:
    """Test newest-first emission."""

    def test_sequence_is_reverse_of_forward(self, graph):
        """Without forks backward output is forward output reversed."""
        execution = (
            graph.plain("1")
            .block_start("2", "1")
            .plain("3", "2")
            .block_end("4", "2", "3")
            .stage("5", "4")
            .plain("6", "5")
            .build()
        )
        scanner = ChunkScanner(execution)
        forward = scanner.chunks()
        backward = scanner.chunks(direction=Direction.BACKWARD)
        assert backward == list(reversed(forward))

    def test_container_before_inner_chunks(self, graph, as_spans):
        execution = (
            graph.block_start("1")
            .fork("2", "1")
            .branch_start("3", "2")
            .branch_start("4", "2")
            .join("5", "2", "3", "4")
            .block_end("6", "1", "5")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("1", "6", "block", True),
            ("2", "5", "parallel_block", True),
            ("3", "3", "parallel_branch", True),
            ("4", "4", "parallel_branch", True),
        ]

    def test_nested_fork_inside_branch(self, graph, as_spans):
        execution = (
            graph.fork("1")
            .branch_start("2", "1")
            .branch_start("3", "1")
            .fork("4", "2")
            .branch_start("5", "4")
            .branch_start("6", "4")
            .join("7", "4", "5", "6")
            .plain("8", "3")
            .join("9", "1", "7", "8")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("1", "9", "parallel_block", True),
            ("2", "7", "parallel_branch", True),
            ("4", "7", "parallel_block", True),
            ("5", "5", "parallel_branch", True),
            ("6", "6", "parallel_branch", True),
            ("3", "8", "parallel_branch", True),
        ]

    def test_same_chunks_as_forward(self, graph):
        """Both directions find the same set of chunks."""
        execution = (
            graph.stage("0")
            .fork("1", "0")
            .branch_start("2", "1")
            .branch_start("3", "1")
            .block_start("4", "2")
            .block_end("5", "4", "4")
            .join("6", "1", "5", "3")
            .plain("7", "6")
            .build()
        )
        scanner = ChunkScanner(execution)
        forward = scanner.chunks()
        backward = scanner.chunks(direction=Direction.BACKWARD)
        assert sorted(forward, key=repr) == sorted(backward, key=repr)


class TestRunningGraphs:
    """Test walks starting on the frontier of a running execution."""

    def test_running_fork(self, graph, as_spans):
        """The walk starts in a branch and is folded into the open fork."""
        execution = (
            graph.fork("1")
            .branch_start("2", "1")
            .branch_start("3", "1")
            .plain("4", "2")
            .plain("5", "3")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("1", "5", "parallel_block", False),
            ("2", "4", "parallel_branch", False),
            ("3", "5", "parallel_branch", False),
        ]

    def test_label_runs(self, graph, as_spans):
        execution = (
            graph.stage("1", label="Build")
            .plain("2", "1")
            .stage("3", "2", label="Test")
            .plain("4", "3")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("3", "4", "linear", False),
            ("1", "2", "linear", True),
        ]

    def test_label_run_before_labelled_block(self, graph, as_spans):
        execution = (
            graph.stage("1", label="A")
            .plain("2", "1")
            .block_start("3", "2", label="B")
            .plain("4", "3")
            .block_end("5", "3", "4")
            .plain("6", "5")
            .build()
        )
        assert as_spans(scan_back(execution)) == [
            ("6", "6", "node", True),
            ("3", "5", "block", True),
            ("1", "2", "linear", True),
        ]

    def test_configured_direction(self, graph, as_spans):
        """The configured direction applies when none is passed."""
        execution = graph.plain("1").plain("2", "1").build()
        scanner = ChunkScanner(execution, config=ScanConfig(direction="backward"))
        assert as_spans(scanner.chunks()) == [
            ("2", "2", "node", True),
            ("1", "1", "node", True),
        ]


class TestExplicitEnd:
    """Test walks from a node behind the frontier."""

    @pytest.fixture
    def execution(self, graph):
        return (
            graph.plain("1")
            .block_start("2", "1")
            .plain("3", "2")
            .block_end("4", "2", "3")
            .plain("5", "4")
            .build()
        )

    def test_end_on_block_end(self, execution, as_spans):
        assert as_spans(scan_back(execution, "4")) == [
            ("2", "4", "block", True),
            ("1", "1", "node", True),
        ]

    def test_end_inside_block(self, execution, as_spans):
        """A block cut by the end node is MIXED and unbalanced."""
        assert as_spans(scan_back(execution, "3")) == [
            ("2", "3", "mixed", False),
            ("1", "1", "node", True),
        ]

    def test_end_inside_finished_branch(self, graph, as_spans):
        execution = (
            graph.fork("1")
            .branch_start("2", "1")
            .branch_start("3", "1")
            .plain("4", "2")
            .join("5", "1", "4", "3")
            .build()
        )
        assert as_spans(scan_back(execution, "4")) == [
            ("1", "4", "mixed", False),
            ("2", "4", "mixed", False),
        ]

    def test_stop_not_supported(self, execution):
        with pytest.raises(ValueError, match="forward"):
            ChunkScanner(execution).scan(stop_id="3", direction=Direction.BACKWARD)


class TestMalformed:
    """Test structural failures found walking backward."""

    def test_end_without_start(self, graph):
        execution = graph.plain("1").block_end("2", "9", "1").build()
        scan_pass = ChunkScanner(execution).scan(direction=Direction.BACKWARD)

        with pytest.raises(MalformedGraphError) as exc_info:
            list(scan_pass)
        assert exc_info.value.node_id == "2"
        assert scan_pass.state is ScanState.ERROR

    def test_end_recorded_before_start(self, make_graph):
        """An opener recorded after its end marker is rejected."""
        execution = (
            make_graph("run-1")
            .plain("1")
            .block_end("2", "3", "1")
            .block_start("3", "2")
            .build()
        )
        with pytest.raises(MalformedGraphError):
            ChunkScanner(execution).chunks("2", direction=Direction.BACKWARD)

    def test_crossed_blocks(self, graph):
        execution = (
            graph.block_start("1")
            .block_start("2", "1")
            .block_end("3", "1", "2")
            .build()
        )
        with pytest.raises(MalformedGraphError) as exc_info:
            scan_back(execution)
        assert exc_info.value.node_id == "3"
