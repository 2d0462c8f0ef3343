"""Structured logging for chunk scanning and dispatch.

This module provides telemetry hooks for scanner passes and visitor
dispatch, emitting structured log records for observability.
"""

from __future__ import annotations

import logging

from ...core.enums import Direction, ScanState
from ...models.chunk import Chunk

logger = logging.getLogger(__name__)


def log_scan_started(
    *,
    execution_id: str,
    direction: Direction,
    start_id: str | None,
    stop_id: str | None = None,
) -> None:
    """Log the start of a scan.

    Args:
        execution_id: Execution being scanned
        direction: Traversal direction
        start_id: Node the cursor starts on (None for an empty execution)
        stop_id: Requested bound, if any
    """
    logger.debug(
        "chunk_scan_started",
        extra={
            "execution_id": execution_id,
            "direction": direction.value,
            "start_id": start_id,
            "stop_id": stop_id,
        },
    )


def log_state_transition(
    *,
    execution_id: str,
    node_id: str | None,
    previous: ScanState,
    current: ScanState,
) -> None:
    """Log one cursor state change (only when tracing is enabled)."""
    logger.debug(
        "chunk_scan_transition",
        extra={
            "execution_id": execution_id,
            "node_id": node_id,
            "previous_state": previous.value,
            "state": current.value,
        },
    )


def log_chunk_emitted(*, chunk: Chunk) -> None:
    """Log a chunk leaving the scanner."""
    logger.debug(
        "chunk_emitted",
        extra={
            "execution_id": chunk.execution_id,
            "first_node_id": chunk.first_node_id,
            "last_node_id": chunk.last_node_id,
            "chunk_type": chunk.chunk_type.value,
            "balanced": chunk.balanced,
        },
    )


def log_scan_complete(
    *,
    execution_id: str,
    direction: Direction,
    chunks_emitted: int,
) -> None:
    """Log completion of a scan.

    Args:
        execution_id: Execution that was scanned
        direction: Traversal direction
        chunks_emitted: Number of chunks produced by the pass
    """
    logger.info(
        "chunk_scan_complete",
        extra={
            "execution_id": execution_id,
            "direction": direction.value,
            "chunks_emitted": chunks_emitted,
        },
    )


def log_scan_error(
    *,
    execution_id: str,
    node_id: str | None,
    error_type: str,
    error_message: str,
) -> None:
    """Log a structural failure that ended a scan.

    Args:
        execution_id: Execution that was scanned
        node_id: Node the failure was detected on, if known
        error_type: Exception class name
        error_message: Error message
    """
    logger.error(
        "chunk_scan_error",
        extra={
            "execution_id": execution_id,
            "node_id": node_id,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_dispatch_stopped(
    *,
    execution_id: str,
    chunks_visited: int,
    last_chunk: Chunk | None,
) -> None:
    """Log a visitor asking the dispatcher to stop early."""
    logger.info(
        "chunk_dispatch_stopped",
        extra={
            "execution_id": execution_id,
            "chunks_visited": chunks_visited,
            "last_first_node_id": last_chunk.first_node_id if last_chunk else None,
            "last_chunk_type": last_chunk.chunk_type.value if last_chunk else None,
        },
    )
