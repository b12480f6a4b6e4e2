"""Per-node utilization report.

Reads the current allocation state of every node and serializes it as CSV.
The report is a snapshot at call time; calling it before any drain yields
zero utilization for every node.
"""

import csv
import io
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from .nodes import WorkerNode

logger = structlog.get_logger(__name__)

REPORT_HEADER = ("NodeID", "CPU Utilization (%)", "Memory Utilization (%)")


@dataclass
class UtilizationRow:
    """Utilization of a single node, as percentages."""

    node_id: int
    cpu_utilization: float
    memory_utilization: float


def collect_utilization(nodes: Iterable[WorkerNode]) -> list[UtilizationRow]:
    """Snapshot the utilization of every node, sorted by node id."""
    rows = [
        UtilizationRow(
            node_id=node.id,
            cpu_utilization=node.cpu_utilization(),
            memory_utilization=node.memory_utilization(),
        )
        for node in nodes
    ]
    return sorted(rows, key=lambda row: row.node_id)


def render_csv(rows: Iterable[UtilizationRow]) -> str:
    """Render rows as CSV text with two-decimal percentages."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(REPORT_HEADER)
    for row in rows:
        writer.writerow(
            [
                row.node_id,
                f"{row.cpu_utilization:.2f}",
                f"{row.memory_utilization:.2f}",
            ],
        )
    return buffer.getvalue()


def write_csv(rows: Iterable[UtilizationRow], path: str | Path) -> Path:
    """Write the report to ``path``.

    The content goes to a temporary file next to the target which then
    replaces it, so a failed write never leaves a truncated report behind.

    Args:
        rows: Utilization rows to write.
        path: Destination file.

    Returns:
        The path that was written.

    Raises:
        OSError: If the file cannot be written.
    """
    target = Path(path)
    content = render_csv(rows)

    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", newline="") as f:
            f.write(content)
        Path(tmp_name).replace(target)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        logger.exception("Failed to write utilization report", path=str(target))
        raise

    logger.info("Utilization report written", path=str(target))
    return target
