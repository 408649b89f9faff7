"""Report rendering — turn a finished kernel into the output files.

Two documents come out of every run:

- **execution.txt** — one ``<time>, <duration>, <description>`` line per
  trace event, then the final partition and PCB tables.  The wording is
  fixed: existing trace consumers compare it byte for byte.
- **system_status.txt** — a PCB table after every FORK and EXEC record.

Rendering is pure (kernel in, strings out); ``write_outputs()`` is the
thin I/O wrapper.  Output goes through a ``Sink`` so callers can
collect lines in memory instead of writing files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from py_ossim.kernel import Kernel, StatusSnapshot
    from py_ossim.memory.partitions import Partition
    from py_ossim.process.pcb import PcbSnapshot

EXECUTION_FILE = "execution.txt"
STATUS_FILE = "system_status.txt"

FINAL_STATE_HEADER = "=== FINAL SYSTEM STATE ==="

_STATUS_BORDER = "+" + "-" * 62 + "+"


class Sink(Protocol):
    """Anything that accepts output lines in order."""

    def write(self, line: str) -> None:
        """Accept one line (without trailing newline)."""
        ...  # pragma: no cover


class ListSink:
    """Collect lines in memory."""

    def __init__(self) -> None:
        """Create an empty sink."""
        self.lines: list[str] = []

    def write(self, line: str) -> None:
        """Append one line."""
        self.lines.append(line)

    def text(self) -> str:
        """Return the collected lines joined with newlines."""
        return "".join(f"{line}\n" for line in self.lines)


def format_partition(partition: Partition) -> str:
    """Render ``Partition <id>: <size> MB - Code: <occupant>``."""
    return f"Partition {partition.id}: {partition.capacity_mb} MB - Code: {partition.occupant}"


def format_process(pcb: PcbSnapshot, *, lineage: bool = True) -> str:
    """Render ``PID <pid>[ (Parent: <ppid>)]: <program> (Partition ..., State: ...)``."""
    parent = f" (Parent: {pcb.parent_pid})" if lineage and pcb.parent_pid is not None else ""
    partition = "none" if pcb.partition_id is None else str(pcb.partition_id)
    return (
        f"PID {pcb.pid}{parent}: {pcb.program_name} "
        f"(Partition {partition}, {pcb.size_mb} MB, State: {pcb.state})"
    )


def final_state_lines(kernel: Kernel) -> list[str]:
    """Return the final-state block (after the trace) as lines."""
    lines = ["", "", FINAL_STATE_HEADER, "Partition Table:"]
    lines.extend(format_partition(p) for p in kernel.partition_snapshot())
    lines.extend(["", "PCB Table:"])
    lineage = kernel.config.lineage
    lines.extend(format_process(p, lineage=lineage) for p in kernel.process_snapshot())
    return lines


def execution_lines(kernel: Kernel) -> list[str]:
    """Return the full execution document as lines."""
    return [*kernel.trace.lines(), *final_state_lines(kernel)]


def _status_table(processes: Iterable[PcbSnapshot]) -> list[str]:
    lines = [
        _STATUS_BORDER,
        f"| {'PID':>4} | {'program name':>12} | {'partition':>9} | {'size':>4} | {'state':>10} | {'parent':>6} |",
        _STATUS_BORDER,
    ]
    for p in processes:
        partition = "-" if p.partition_id is None else p.partition_id
        parent = "-" if p.parent_pid is None else p.parent_pid
        lines.append(
            f"| {p.pid:>4} | {p.program_name:>12} | {partition!s:>9} | {p.size_mb:>4} "
            f"| {p.state!s:>10} | {parent!s:>6} |"
        )
    lines.append(_STATUS_BORDER)
    return lines


def status_lines(snapshots: Iterable[StatusSnapshot]) -> list[str]:
    """Return the system-status document as lines."""
    lines: list[str] = []
    for snap in snapshots:
        lines.append(f"time: {snap.time}; current trace: {snap.trace_line}")
        lines.extend(_status_table(snap.processes))
        lines.append("")
    return lines


def emit_lines(lines: Iterable[str], sink: Sink) -> None:
    """Send every line to *sink* in order."""
    for line in lines:
        sink.write(line)


def render_execution(kernel: Kernel) -> str:
    """Return the execution document as text (newline-terminated lines)."""
    sink = ListSink()
    emit_lines(execution_lines(kernel), sink)
    return sink.text()


def render_status(kernel: Kernel) -> str:
    """Return the system-status document as text."""
    sink = ListSink()
    emit_lines(status_lines(kernel.snapshots), sink)
    return sink.text()


def write_outputs(kernel: Kernel, output_dir: Path) -> tuple[Path, Path]:
    """Write execution.txt and system_status.txt into *output_dir*.

    Returns:
        The two paths written, execution file first.

    """
    output_dir.mkdir(parents=True, exist_ok=True)
    execution_path = output_dir / EXECUTION_FILE
    status_path = output_dir / STATUS_FILE
    execution_path.write_text(render_execution(kernel), encoding="utf-8")
    status_path.write_text(render_status(kernel), encoding="utf-8")
    return execution_path, status_path
