"""Trace engine — read the script one record at a time and drive the kernel.

A trace script is a list of activities, one per line, ``activity[,value]``::

    CPU,50           run user code for 50 ticks
    SYSCALL,4        device 4 traps into the kernel
    END_IO,4         device 4 signals I/O completion
    FORK             the current process forks
    EXEC program1    the current process loads program1
    IF_CHILD,0       the following records run as the new child
    IF_PARENT,0      ... then as its parent
    ENDIF            back to the parent for everything after

Records are handled strictly in script order on one timeline.  The
*current* process — the one FORK and EXEC act on — changes only at
IF_CHILD / IF_PARENT / ENDIF, never because of what is in the ready
queue.

Branches:
    The branch pair is always the most recent successful fork
    (parent, child).  Entering IF_CHILD takes the child off the ready
    queue and runs it while the parent waits; leaving the child branch
    (IF_PARENT or ENDIF) terminates the child and resumes the parent.
    Branches nest: a FORK inside a branch starts a new pair.

Malformed records never stop the run.  They become one zero-cost
``ERROR:`` line and the engine moves on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from py_ossim.io.interrupts import InterruptKind, tables_from
from py_ossim.kernel import Kernel, KernelState
from py_ossim.logging import LogLevel
from py_ossim.process.pcb import ProcessState
from py_ossim.process.table import INIT_PID

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from py_ossim.catalog import Catalog
    from py_ossim.config import SimulationConfig

NO_VALUE = -1


class Activity(StrEnum):
    """Every activity a trace record can name."""

    CPU = "CPU"
    FORK = "FORK"
    EXEC = "EXEC"
    SYSCALL = "SYSCALL"
    END_IO = "END_IO"
    IF_CHILD = "IF_CHILD"
    IF_PARENT = "IF_PARENT"
    ENDIF = "ENDIF"


# Activities whose meaning depends on the numeric value field
_NEEDS_VALUE = frozenset({Activity.CPU, Activity.SYSCALL, Activity.END_IO})


class TraceParseError(ValueError):
    """Raise when a trace line cannot be understood."""


@dataclass(frozen=True)
class TraceRecord:
    """One parsed line of the trace script.

    Attributes:
        activity: What to do.
        value: The numeric field, or -1 when absent / not applicable.
        program: Program name for EXEC records.
        raw: The original line, for snapshots and error messages.

    """

    activity: Activity
    value: int = NO_VALUE
    program: str | None = None
    raw: str = ""


def parse_record(line: str) -> TraceRecord:
    """Parse one trace line.

    The line is split on commas: the first field is the activity, the
    second the value.  CPU, SYSCALL and END_IO need a numeric value;
    the other activities accept a missing or non-numeric one.

    Raises:
        TraceParseError: If the line is malformed or names an unknown
            activity.

    """
    raw = line.strip()
    parts = raw.split(",")
    head = parts[0].strip()
    value_field = parts[1].strip() if len(parts) >= 2 else None  # noqa: PLR2004

    program: str | None = None
    if head == Activity.EXEC or head.startswith(f"{Activity.EXEC} "):
        activity = Activity.EXEC
        program = head[len(Activity.EXEC) :].strip()
        if not program:
            msg = f"Malformed input line: {raw} (EXEC needs a program name)"
            raise TraceParseError(msg)
    else:
        try:
            activity = Activity(head)
        except ValueError as e:
            msg = f"Malformed input line: {raw} (unknown activity {head!r})"
            raise TraceParseError(msg) from e

    value = NO_VALUE
    if value_field is not None:
        try:
            value = int(value_field)
        except ValueError:
            value = NO_VALUE
            if activity in _NEEDS_VALUE:
                msg = f"Malformed input line: {raw} (non-numeric value {value_field!r})"
                raise TraceParseError(msg) from None
    elif activity in _NEEDS_VALUE:
        msg = f"Malformed input line: {raw}"
        raise TraceParseError(msg)
    if activity is Activity.CPU and value < 0:
        msg = f"Malformed input line: {raw} (negative duration)"
        raise TraceParseError(msg)

    return TraceRecord(activity=activity, value=value, program=program, raw=raw)


class Role(StrEnum):
    """Which side of a fork a branch is currently running."""

    CHILD = "child"
    PARENT = "parent"


@dataclass
class Branch:
    """An open IF_CHILD / IF_PARENT block."""

    parent: int
    child: int
    role: Role = field(default=Role.CHILD)


class TraceEngine:
    """Dispatch trace records to the kernel, one at a time."""

    def __init__(self, kernel: Kernel) -> None:
        """Create an engine driving a booted *kernel*.

        Raises:
            RuntimeError: If the kernel has not been booted.

        """
        if kernel.state is not KernelState.RUNNING:
            msg = "Cannot run a trace on a kernel that has not booted"
            raise RuntimeError(msg)
        self._kernel = kernel
        self._current = INIT_PID
        self._last_fork: tuple[int, int] | None = None
        self._branches: list[Branch] = []
        self._records = 0

    @property
    def kernel(self) -> Kernel:
        """Return the kernel being driven."""
        return self._kernel

    @property
    def current_pid(self) -> int:
        """Return the PID that FORK and EXEC currently act on."""
        return self._current

    @property
    def depth(self) -> int:
        """Return the number of open branches."""
        return len(self._branches)

    @property
    def records_processed(self) -> int:
        """Return the number of non-blank lines handled so far."""
        return self._records

    def run(self, lines: Iterable[str]) -> Kernel:
        """Process every line, then return the kernel for reporting."""
        for line in lines:
            self.feed(line)
        if self._branches:
            self._kernel.logger.log(
                LogLevel.WARNING,
                f"{len(self._branches)} branch(es) still open at end of trace",
                source="engine",
                time=self._kernel.time,
            )
        return self._kernel

    def feed(self, line: str) -> None:
        """Process a single trace line (blank lines are ignored)."""
        if not line.strip():
            return
        self._records += 1
        try:
            record = parse_record(line)
        except TraceParseError as e:
            self._kernel.report_error(str(e), source="engine")
            return
        self._kernel.logger.log(
            LogLevel.DEBUG,
            f"record {record.raw!r} as PID {self._current}",
            source="engine",
            pid=self._current,
            time=self._kernel.time,
        )
        self.dispatch(record)

    def dispatch(self, record: TraceRecord) -> None:
        """Route a parsed record to the kernel or the branch logic."""
        kernel = self._kernel
        match record.activity:
            case Activity.CPU:
                kernel.cpu(record.value)
            case Activity.SYSCALL:
                kernel.interrupt(record.value, InterruptKind.SYSCALL)
            case Activity.END_IO:
                kernel.interrupt(record.value, InterruptKind.END_IO)
            case Activity.FORK:
                self._fork(record)
            case Activity.EXEC:
                assert record.program is not None  # noqa: S101
                kernel.exec(self._current, record.program)
                kernel.record_snapshot(record.raw)
            case Activity.IF_CHILD:
                self._enter_child(record)
            case Activity.IF_PARENT:
                self._enter_parent(record)
            case Activity.ENDIF:
                self._end_branch(record)

    # -- FORK and branches ----------------------------------------------------

    def _fork(self, record: TraceRecord) -> None:
        processes = self._kernel.processes
        before = len(processes)
        self._kernel.fork(self._current)
        if len(processes) > before:
            self._last_fork = (self._current, processes.children_of(self._current)[-1])
        self._kernel.record_snapshot(record.raw)

    def _enter_child(self, record: TraceRecord) -> None:
        if self._last_fork is None or self._last_fork[0] != self._current:
            self._kernel.report_error(
                f"{record.raw}: no preceding FORK by PID {self._current}", source="engine"
            )
            return
        parent_pid, child_pid = self._last_fork
        self._last_fork = None
        processes = self._kernel.processes
        self._kernel.scheduler.remove(child_pid)
        parent = processes.get(parent_pid)
        child = processes.get(child_pid)
        assert parent is not None  # noqa: S101
        assert child is not None  # noqa: S101
        parent.wait()
        child.dispatch()
        self._branches.append(Branch(parent=parent_pid, child=child_pid))
        self._current = child_pid

    def _leave_child(self, branch: Branch) -> None:
        processes = self._kernel.processes
        self._kernel.scheduler.remove(branch.child)
        processes.terminate(branch.child)
        parent = processes.get(branch.parent)
        assert parent is not None  # noqa: S101
        if parent.state is not ProcessState.TERMINATED:
            parent.dispatch()
        self._current = branch.parent

    def _enter_parent(self, record: TraceRecord) -> None:
        if not self._branches or self._branches[-1].role is not Role.CHILD:
            self._kernel.report_error(f"{record.raw}: no open IF_CHILD block", source="engine")
            return
        branch = self._branches[-1]
        self._leave_child(branch)
        branch.role = Role.PARENT

    def _end_branch(self, record: TraceRecord) -> None:
        if not self._branches:
            self._kernel.report_error(f"{record.raw}: no open IF block", source="engine")
            return
        branch = self._branches.pop()
        if branch.role is Role.CHILD:
            self._leave_child(branch)
        self._current = branch.parent


def simulate(
    lines: Iterable[str],
    *,
    vectors: Sequence[str],
    delays: Sequence[int],
    catalog: Catalog,
    config: SimulationConfig,
) -> Kernel:
    """Boot a kernel, run a whole trace through it and return it."""
    kernel = Kernel(config=config, tables=tables_from(vectors, delays), catalog=catalog)
    kernel.boot()
    return TraceEngine(kernel).run(lines)
