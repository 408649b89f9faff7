"""Tests for the fork and exec system calls.

Both calls trap through the interrupt boilerplate (vectors 2 and 3),
do their work, and always leave through the exit sequence.  Failures
become a single ``ERROR:`` line and leave every table untouched.
"""

import pytest

from py_ossim.catalog import Catalog
from py_ossim.config import PartitionSpec, SimulationConfig
from py_ossim.io.interrupts import tables_from
from py_ossim.kernel import Kernel
from py_ossim.logging import LogLevel
from py_ossim.memory.partitions import INIT
from py_ossim.process.pcb import Priority, ProcessState
from py_ossim.syscalls import SyscallNumber, dispatch_syscall, handle_exec, handle_fork

VECTORS = ["0X01E3", "0X029C", "0X0695", "0X042B"]
DELAYS = [5, 152, 110, 239]
CATALOG = [("program1", 10), ("program2", 15), ("huge", 100)]

FORK_TICKS = 13 + 1 + 12
EXEC_OVERHEAD = 13 + 1 + 3 + 12


def _booted_kernel(config: SimulationConfig | None = None) -> Kernel:
    """Create and boot a kernel on the default machine."""
    kernel = Kernel(
        config=config or SimulationConfig(),
        tables=tables_from(VECTORS, DELAYS),
        catalog=Catalog.from_pairs(CATALOG),
    )
    kernel.boot()
    return kernel


class TestFork:
    """Verify fork semantics."""

    def test_fork_creates_child_of_caller(self) -> None:
        """The child gets the next PID and the caller as parent."""
        kernel = _booted_kernel()
        kernel.fork(0)
        child = kernel.processes.get(1)
        assert child is not None
        assert child.parent_pid == 0
        assert child.program_name == "init"
        assert child.state is ProcessState.READY
        assert child.priority == Priority.CHILD

    def test_fork_enqueues_child(self) -> None:
        """The child lands in the ready queue."""
        kernel = _booted_kernel()
        kernel.fork(0)
        assert kernel.scheduler.ready_queue == [1]
        assert kernel.processes.children_of(0) == [1]

    def test_fork_leaves_parent_running(self) -> None:
        """Fork does not stop the caller."""
        kernel = _booted_kernel()
        kernel.fork(0)
        parent = kernel.processes.get(0)
        assert parent is not None
        assert parent.state is ProcessState.RUNNING

    def test_fork_trace(self) -> None:
        """Fork traps through vector 2, clones, calls the scheduler, exits."""
        kernel = _booted_kernel()
        kernel.fork(0)
        assert kernel.trace.lines() == [
            "0, 1, switch to kernel mode",
            "1, 10, context saved",
            "11, 1, find vector 2 in memory position 0x0004",
            "12, 1, load address 0X0695 into the PC",
            "13, 1, PCB cloned for child process",
            "14, 0, scheduler called",
            "14, 1, IRET",
            "15, 10, context restored",
            "25, 1, switch to user mode",
        ]
        assert kernel.time == FORK_TICKS

    def test_two_forks_distinct_pids(self) -> None:
        """PIDs are never reused."""
        kernel = _booted_kernel()
        kernel.fork(0)
        kernel.fork(0)
        assert kernel.processes.children_of(0) == [1, 2]

    def test_fork_unknown_caller(self) -> None:
        """An unknown caller is reported and nothing is created."""
        kernel = _booted_kernel()
        step = kernel.fork(42)
        assert not step.ok
        assert "ERROR: Process 42 not found" in [e.description for e in step.events]
        assert len(kernel.processes) == 1
        assert kernel.time == FORK_TICKS


class TestExec:
    """Verify exec semantics."""

    def test_exec_first_fit_and_pcb_update(self) -> None:
        """A 10 MB program goes to partition 1 (lowest id that fits)."""
        kernel = _booted_kernel()
        kernel.exec(0, "program1")
        pcb = kernel.processes.get(0)
        assert pcb is not None
        assert pcb.program_name == "program1"
        assert pcb.partition_id == 1
        assert pcb.size_mb == 10  # noqa: PLR2004
        partition = kernel.partitions.get(1)
        assert partition is not None
        assert partition.occupant == "program1"

    def test_exec_trace_and_loader_cost(self) -> None:
        """Loading costs size × 15 ticks, then occupy (1) and PCB update (3)."""
        kernel = _booted_kernel()
        kernel.exec(0, "program1")
        body = kernel.trace.lines()[4:8]
        assert body == [
            "13, 150, loading program1 from disk to partition 1",
            "163, 1, partition 1 marked as occupied",
            "164, 3, PCB updated with new program info",
            "167, 0, scheduler called",
        ]
        assert kernel.time == EXEC_OVERHEAD + 150

    def test_exec_uses_configured_loader_cost(self) -> None:
        """The per-MB loader cost comes from the configuration."""
        kernel = _booted_kernel(SimulationConfig(loader_time_per_mb=2))
        kernel.exec(0, "program1")
        assert kernel.time == EXEC_OVERHEAD + 20

    def test_second_exec_takes_next_partition(self) -> None:
        """Occupied partitions are skipped."""
        kernel = _booted_kernel()
        kernel.fork(0)
        kernel.exec(0, "program1")
        kernel.exec(1, "program1")
        child = kernel.processes.get(1)
        assert child is not None
        assert child.partition_id == 2  # noqa: PLR2004

    def test_exec_unknown_program(self) -> None:
        """A program missing from the catalog is an error line, nothing else."""
        kernel = _booted_kernel()
        step = kernel.exec(0, "ghost")
        assert not step.ok
        assert step.events[4].description == "ERROR: Program not found: ghost"

    def test_failed_exec_retries_change_nothing(self) -> None:
        """Repeating a failing exec leaves both tables exactly as they were."""
        kernel = _booted_kernel()
        kernel.fork(0)
        partitions = kernel.partition_snapshot()
        processes = kernel.process_snapshot()
        ready = kernel.scheduler.ready_queue
        for _ in range(3):
            kernel.exec(0, "ghost")
            kernel.exec(1, "huge")
            assert kernel.partition_snapshot() == partitions
            assert kernel.process_snapshot() == processes
            assert kernel.scheduler.ready_queue == ready

    def test_exec_no_partition(self) -> None:
        """A program larger than every free partition is reported."""
        kernel = _booted_kernel()
        before = kernel.partition_snapshot()
        step = kernel.exec(0, "huge")
        assert step.error == "No partition available for huge (100 MB)"
        assert kernel.partition_snapshot() == before
        assert kernel.time == EXEC_OVERHEAD - 3

    def test_exec_unknown_caller_checked_first(self) -> None:
        """With several problems, the missing process is reported."""
        kernel = _booted_kernel()
        step = kernel.exec(9, "ghost")
        assert step.error == "Process 9 not found"

    def test_exec_failure_is_logged(self) -> None:
        """Failures reach the kernel log at ERROR level."""
        kernel = _booted_kernel()
        kernel.exec(0, "ghost")
        errors = kernel.logger.filter(min_level=LogLevel.ERROR)
        assert len(errors) == 1
        assert errors[0].source == "syscall"


class TestDispatch:
    """Verify syscall routing and vector failures."""

    def test_dispatch_fork(self) -> None:
        """SYS_FORK routes to the fork handler."""
        kernel = _booted_kernel()
        step = dispatch_syscall(kernel, SyscallNumber.SYS_FORK, 0, caller_pid=0)
        assert step.events[4].description == "PCB cloned for child process"

    def test_dispatch_unknown_number(self) -> None:
        """Numbers that are not syscalls are rejected."""
        kernel = _booted_kernel()
        with pytest.raises(ValueError, match="Unknown syscall"):
            dispatch_syscall(kernel, 7, 0, caller_pid=0)  # type: ignore[arg-type]

    def test_missing_vector_skips_body(self) -> None:
        """With too few vectors, exec reports the vector and changes nothing."""
        kernel = Kernel(
            config=SimulationConfig(
                partitions=(PartitionSpec(1, 40), PartitionSpec(2, 2, INIT)), init_partition=2
            ),
            tables=tables_from(VECTORS[:2], DELAYS),
            catalog=Catalog.from_pairs(CATALOG),
        )
        kernel.boot()
        step = handle_exec(kernel, 0, caller_pid=0, program_name="program1")
        assert not step.ok
        assert step.error is not None
        assert "vector 3 out of range" in step.error
        partition = kernel.partitions.get(1)
        assert partition is not None
        assert partition.is_free
        assert [e.description for e in step.events][-3:] == [
            "IRET",
            "context restored",
            "switch to user mode",
        ]

    def test_handler_leaves_clock_to_apply(self) -> None:
        """A handler updates the tables; only apply() moves the clock."""
        kernel = _booted_kernel()
        step = handle_fork(kernel, 0, caller_pid=0)
        assert step.time == FORK_TICKS
        assert kernel.time == 0
        assert kernel.scheduler.ready_queue == [1]
