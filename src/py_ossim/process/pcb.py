"""Process Control Block (PCB).

A process is a program in execution.  The kernel tracks each one via a
PCB holding its PID, parent, loaded program, memory partition, size,
state and priority.

PCBs are never deleted: a finished process keeps its PCB with state
TERMINATED so the final report can still show it.

State machine::

    READY ⇄ RUNNING → TERMINATED
              ↓  ↑
            WAITING

Unlike a real kernel the simulator does not police every transition —
``fork`` clones a running parent into a READY child and branch
switching moves processes between RUNNING and WAITING — but the
terminal state is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum


class ProcessState(StrEnum):
    """Lifecycle states of a simulated process."""

    RUNNING = "running"
    READY = "ready"
    WAITING = "waiting"
    TERMINATED = "terminated"


class Priority(IntEnum):
    """Scheduling priority marker (higher = more urgent).

    A forked child is marked CHILD so a priority-aware scheduler can
    run it before its parent.
    """

    NORMAL = 0
    CHILD = 1


@dataclass(frozen=True)
class PcbSnapshot:
    """A frozen view of a PCB, used for status snapshots and reports."""

    pid: int
    parent_pid: int | None
    program_name: str
    partition_id: int | None
    size_mb: int
    state: ProcessState
    priority: int


class Process:
    """A simulated process (the Process Control Block)."""

    def __init__(
        self,
        *,
        pid: int,
        program_name: str,
        size_mb: int,
        partition_id: int | None = None,
        parent_pid: int | None = None,
        state: ProcessState = ProcessState.READY,
        priority: int = Priority.NORMAL,
    ) -> None:
        """Create a PCB.

        Args:
            pid: Unique process identifier.
            program_name: The program currently loaded.
            size_mb: Memory the program needs, in megabytes.
            partition_id: Partition the program is loaded in, if any.
            parent_pid: PID of the parent, None only for init.
            state: Initial lifecycle state.
            priority: Scheduling priority marker.

        """
        self._pid = pid
        self._program_name = program_name
        self._size_mb = size_mb
        self._partition_id = partition_id
        self._parent_pid = parent_pid
        self._state = state
        self._priority = priority

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def parent_pid(self) -> int | None:
        """Return the parent's PID, or None for the root process."""
        return self._parent_pid

    @property
    def program_name(self) -> str:
        """Return the name of the loaded program."""
        return self._program_name

    @property
    def partition_id(self) -> int | None:
        """Return the partition holding the program, or None."""
        return self._partition_id

    @property
    def size_mb(self) -> int:
        """Return the program size in megabytes."""
        return self._size_mb

    @property
    def state(self) -> ProcessState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def priority(self) -> int:
        """Return the scheduling priority marker."""
        return self._priority

    def clone(self, *, pid: int) -> Process:
        """Return a child copy of this PCB (the heart of ``fork``).

        The child keeps the parent's program, partition and size, gets
        the new *pid*, records this process as its parent, is marked
        with CHILD priority and starts READY.
        """
        return Process(
            pid=pid,
            program_name=self._program_name,
            size_mb=self._size_mb,
            partition_id=self._partition_id,
            parent_pid=self._pid,
            state=ProcessState.READY,
            priority=Priority.CHILD,
        )

    def load_program(self, *, program_name: str, partition_id: int, size_mb: int) -> None:
        """Replace the program image in place (the heart of ``exec``).

        PID and parent are preserved.
        """
        self._program_name = program_name
        self._partition_id = partition_id
        self._size_mb = size_mb

    def _set_state(self, target: ProcessState) -> None:
        if self._state is ProcessState.TERMINATED:
            msg = f"Cannot move process {self._pid} to {target}: already terminated"
            raise RuntimeError(msg)
        self._state = target

    def dispatch(self) -> None:
        """Give the process the CPU (→ RUNNING)."""
        self._set_state(ProcessState.RUNNING)

    def wait(self) -> None:
        """Park the process (→ WAITING)."""
        self._set_state(ProcessState.WAITING)

    def terminate(self) -> None:
        """End the process (→ TERMINATED)."""
        self._set_state(ProcessState.TERMINATED)

    def snapshot(self) -> PcbSnapshot:
        """Return an immutable copy of the PCB's current fields."""
        return PcbSnapshot(
            pid=self._pid,
            parent_pid=self._parent_pid,
            program_name=self._program_name,
            partition_id=self._partition_id,
            size_mb=self._size_mb,
            state=self._state,
            priority=self._priority,
        )

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Process(pid={self._pid}, program={self._program_name!r}, state={self._state})"
