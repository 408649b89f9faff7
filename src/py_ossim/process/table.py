"""Process table — every PCB the simulation has ever created.

The table maps PID → PCB in creation order and keeps a parent→children
index that grows with each ``fork``.  PIDs come from a per-table
counter: PID 0 is reserved for init, children count up from 1.  A
per-table counter (rather than a module-level one) means two kernels
in the same test run never share PID sequences.
"""

from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING

from py_ossim.process.pcb import Process, ProcessState

if TYPE_CHECKING:
    from collections.abc import Iterator

INIT_PID = 0


class ProcessTable:
    """PID → PCB mapping plus the parent→children index."""

    def __init__(self) -> None:
        """Create an empty process table."""
        self._processes: dict[int, Process] = {}
        self._children: dict[int, list[int]] = {}
        self._next_pid = count(start=INIT_PID + 1)

    def allocate_pid(self) -> int:
        """Return the next unused PID (monotonically increasing)."""
        return next(self._next_pid)

    def add(self, process: Process) -> None:
        """Register a PCB and, if it has a parent, index the relationship.

        Raises:
            ValueError: If the PID is already in the table.

        """
        if process.pid in self._processes:
            msg = f"PID {process.pid} already in process table"
            raise ValueError(msg)
        self._processes[process.pid] = process
        if process.parent_pid is not None:
            self._children.setdefault(process.parent_pid, []).append(process.pid)

    def get(self, pid: int) -> Process | None:
        """Return the PCB for *pid*, or None."""
        return self._processes.get(pid)

    def children_of(self, pid: int) -> list[int]:
        """Return the PIDs forked by *pid*, in fork order."""
        return list(self._children.get(pid, []))

    def is_child_of(self, pid: int, parent_pid: int) -> bool:
        """Return True if *pid*'s parent is *parent_pid*."""
        process = self._processes.get(pid)
        return process is not None and process.parent_pid == parent_pid

    def terminate(self, pid: int) -> None:
        """Mark a process TERMINATED (its PCB stays in the table).

        Raises:
            ValueError: If the PID is unknown.

        """
        process = self._processes.get(pid)
        if process is None:
            msg = f"Process {pid} not found"
            raise ValueError(msg)
        if process.state is not ProcessState.TERMINATED:
            process.terminate()

    @property
    def children(self) -> dict[int, list[int]]:
        """Return a copy of the parent→children index."""
        return {pid: list(kids) for pid, kids in self._children.items()}

    def __contains__(self, pid: object) -> bool:
        """Return True if *pid* is in the table."""
        return pid in self._processes

    def __iter__(self) -> Iterator[Process]:
        """Iterate over PCBs in creation order."""
        return iter(self._processes.values())

    def __len__(self) -> int:
        """Return the number of PCBs."""
        return len(self._processes)
