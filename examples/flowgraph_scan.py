#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from laakhay.flowgraph import (
    ChunkDispatcher,
    ChunkScanner,
    Direction,
    FlowExecution,
    FlowNode,
    Marker,
)


def build_execution(execution_id: str) -> FlowExecution:
    """Sample pipeline: checkout, parallel build/test, then a deploy block."""
    execution = FlowExecution(execution_id)
    for node in (
        FlowNode(id="1", execution_id=execution_id, markers={Marker.LABEL}, label="Checkout"),
        FlowNode(id="2", execution_id=execution_id, parents=("1",)),
        FlowNode(
            id="3",
            execution_id=execution_id,
            parents=("2",),
            markers={Marker.BLOCK_START, Marker.PARALLEL},
            branch_count=2,
        ),
        FlowNode(id="4", execution_id=execution_id, parents=("3",), markers={Marker.BRANCH_START}, label="build"),
        FlowNode(id="5", execution_id=execution_id, parents=("3",), markers={Marker.BRANCH_START}, label="test"),
        FlowNode(id="6", execution_id=execution_id, parents=("4",)),
        FlowNode(id="7", execution_id=execution_id, parents=("5",)),
        FlowNode(
            id="8",
            execution_id=execution_id,
            parents=("6", "7"),
            markers={Marker.BLOCK_END, Marker.PARALLEL},
            start_id="3",
        ),
        FlowNode(id="9", execution_id=execution_id, parents=("8",), markers={Marker.BLOCK_START}, label="Deploy"),
        FlowNode(id="10", execution_id=execution_id, parents=("9",)),
    ):
        execution.append(node)
    return execution


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List the chunks of a sample pipeline execution")
    p.add_argument("direction", nargs="?", default="forward", choices=["forward", "backward"])
    p.add_argument("--start", default=None, help="node the scan starts on")
    p.add_argument("--stop", default=None, help="forward bound of the scan")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    execution = build_execution("sample-run")
    dispatcher = ChunkDispatcher(ChunkScanner(execution))

    async def show(chunk) -> None:
        first = chunk.first_node(execution)
        print(
            f"{chunk.chunk_type.value:16} | {chunk.first_node_id:>5} | {chunk.last_node_id:>5} | "
            f"{'yes' if chunk.balanced else 'no':>8} | {first.label or ''}"
        )

    print("=" * 60)
    print(f"Execution  : {execution.id}")
    print(f"Nodes      : {len(execution)}")
    print(f"Direction  : {args.direction}")
    print("=" * 60)
    print(f"{'Type':16} | {'First':>5} | {'Last':>5} | {'Balanced':>8} | Label")
    print("-" * 60)
    result = await dispatcher.adispatch(
        show, args.start, stop_id=args.stop, direction=Direction(args.direction)
    )
    print("=" * 60)
    print(f"Chunks     : {result.chunks_visited} ({result.state.value})")


if __name__ == "__main__":
    asyncio.run(main())
