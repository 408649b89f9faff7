"""The kernel — the single context that owns all simulation state.

Every table the simulation mutates lives on one ``Kernel`` object:

    clock · partition table · process table · ready queue · trace · log

Handlers receive the kernel explicitly; nothing is module-level, so two
kernels (say, in two tests) never see each other's state.

Boot sequence (order matters):
    0. Logger — capture events from the start.
    1. Partition table — built from the configured layout.
    2. Process table — with the init process (PID 0).
    3. Scheduler — the ready queue, seeded with nothing: init is
       already running.

The clock starts at 0 and only moves when a ``Step`` is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from py_ossim.io.interrupts import InterruptKind, handle_interrupt
from py_ossim.logging import Logger, LogLevel
from py_ossim.memory.partitions import PartitionTable
from py_ossim.process.pcb import Priority, Process, ProcessState
from py_ossim.process.scheduler import Scheduler, policy_for
from py_ossim.process.table import INIT_PID, ProcessTable
from py_ossim.syscalls import SyscallNumber, dispatch_syscall
from py_ossim.trace import Step, Trace, emit

if TYPE_CHECKING:
    from py_ossim.catalog import Catalog
    from py_ossim.config import SimulationConfig
    from py_ossim.io.interrupts import InterruptTables
    from py_ossim.memory.partitions import Partition
    from py_ossim.process.pcb import PcbSnapshot


class KernelState(StrEnum):
    """Lifecycle phases of the simulated kernel."""

    SHUTDOWN = "shutdown"
    RUNNING = "running"


@dataclass(frozen=True)
class StatusSnapshot:
    """The process table as it stood right after a FORK or EXEC record."""

    time: int
    trace_line: str
    processes: tuple[PcbSnapshot, ...]


class Kernel:
    """The simulation context: configuration, tables, clock and trace."""

    def __init__(
        self,
        *,
        config: SimulationConfig,
        tables: InterruptTables,
        catalog: Catalog,
    ) -> None:
        """Create a kernel in the SHUTDOWN state.

        Args:
            config: Partition layout, init process and fixed costs.
            tables: Vector and delay tables for the interrupt path.
            catalog: Programs available to ``exec``.

        """
        self._config = config
        self._tables = tables
        self._catalog = catalog
        self._state = KernelState.SHUTDOWN
        self._time = 0
        self._trace = Trace()
        self._logger = Logger()
        self._partitions: PartitionTable | None = None
        self._processes: ProcessTable | None = None
        self._scheduler: Scheduler | None = None
        self._snapshots: list[StatusSnapshot] = []
        self._boot_log: list[str] = []

    # -- Accessors ------------------------------------------------------------

    @property
    def state(self) -> KernelState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def config(self) -> SimulationConfig:
        """Return the boot configuration."""
        return self._config

    @property
    def tables(self) -> InterruptTables:
        """Return the vector and delay tables."""
        return self._tables

    @property
    def catalog(self) -> Catalog:
        """Return the external-file catalog."""
        return self._catalog

    @property
    def time(self) -> int:
        """Return the current simulated time."""
        return self._time

    @property
    def trace(self) -> Trace:
        """Return the execution trace."""
        return self._trace

    @property
    def logger(self) -> Logger:
        """Return the kernel log."""
        return self._logger

    @property
    def partitions(self) -> PartitionTable:
        """Return the partition table (kernel must be running)."""
        self._require_running()
        assert self._partitions is not None  # noqa: S101
        return self._partitions

    @property
    def processes(self) -> ProcessTable:
        """Return the process table (kernel must be running)."""
        self._require_running()
        assert self._processes is not None  # noqa: S101
        return self._processes

    @property
    def scheduler(self) -> Scheduler:
        """Return the scheduler (kernel must be running)."""
        self._require_running()
        assert self._scheduler is not None  # noqa: S101
        return self._scheduler

    @property
    def snapshots(self) -> list[StatusSnapshot]:
        """Return the recorded status snapshots in order."""
        return list(self._snapshots)

    def dmesg(self) -> list[str]:
        """Return the boot log followed by every kernel log entry."""
        return [*self._boot_log, *(str(e) for e in self._logger.entries)]

    def _require_running(self) -> None:
        if self._state is not KernelState.RUNNING:
            msg = "Kernel is not running"
            raise RuntimeError(msg)

    # -- Lifecycle ------------------------------------------------------------

    def boot(self) -> None:
        """Transition SHUTDOWN → RUNNING, building every table.

        Raises:
            RuntimeError: If the kernel is already running.

        """
        if self._state is not KernelState.SHUTDOWN:
            msg = f"Cannot boot: kernel is {self._state}, expected shutdown"
            raise RuntimeError(msg)

        cfg = self._config
        self._boot_log.append("[OK] Logger")

        partitions = PartitionTable(spec.build() for spec in cfg.partitions)
        self._partitions = partitions
        self._boot_log.append(f"[OK] Partition table ({len(partitions)} partitions)")

        processes = ProcessTable()
        init = Process(
            pid=INIT_PID,
            program_name=cfg.init_program,
            size_mb=cfg.init_size_mb,
            partition_id=cfg.init_partition,
            state=ProcessState.RUNNING,
            priority=Priority.NORMAL,
        )
        processes.add(init)
        self._processes = processes
        self._boot_log.append(f"[OK] Init process (PID {INIT_PID})")

        policy = policy_for(cfg.scheduling_policy)
        self._scheduler = Scheduler(processes=processes, policy=policy)
        self._boot_log.append(f"[OK] Scheduler ({policy.name.upper()})")

        self._state = KernelState.RUNNING
        self._logger.log(LogLevel.INFO, "Kernel boot complete", source="kernel")

    # -- Clock ----------------------------------------------------------------

    def apply(self, step: Step) -> Step:
        """Append a step's events to the trace and advance the clock.

        Raises:
            ValueError: If the step does not start at the current time.

        """
        if step.events and step.events[0].time != self._time:
            msg = f"Step starts at {step.events[0].time}, clock is at {self._time}"
            raise ValueError(msg)
        self._trace.extend(step.events)
        self._time = step.time
        return step

    # -- Activities -----------------------------------------------------------

    def cpu(self, duration: int) -> Step:
        """Run user code on the CPU for *duration* ticks."""
        self._require_running()
        return self.apply(emit(self._time, duration, "CPU execution"))

    def interrupt(self, device_number: int, kind: InterruptKind) -> Step:
        """Service a SYSCALL or END_IO interrupt for a device."""
        self._require_running()
        cfg = self._config
        step = handle_interrupt(
            self._time,
            device_number,
            str(kind),
            self._tables,
            context_time=cfg.context_time,
            base=cfg.vector_base,
            entry_size=cfg.vector_entry_size,
        )
        if not step.ok:
            self._logger.log(LogLevel.ERROR, f"{kind}: {step.error}", source="interrupt", time=self._time)
        return self.apply(step)

    def fork(self, caller_pid: int) -> Step:
        """Run the ``fork`` syscall on behalf of *caller_pid*."""
        self._require_running()
        return self.apply(
            dispatch_syscall(self, SyscallNumber.SYS_FORK, self._time, caller_pid=caller_pid)
        )

    def exec(self, caller_pid: int, program_name: str) -> Step:
        """Run the ``exec`` syscall on behalf of *caller_pid*."""
        self._require_running()
        return self.apply(
            dispatch_syscall(
                self,
                SyscallNumber.SYS_EXEC,
                self._time,
                caller_pid=caller_pid,
                program_name=program_name,
            )
        )

    def report_error(self, message: str, *, source: str, duration: int = 0) -> Step:
        """Record a recoverable problem as an ``ERROR:`` trace line."""
        self._require_running()
        self._logger.log(LogLevel.WARNING, message, source=source, time=self._time)
        return self.apply(emit(self._time, duration, f"ERROR: {message}", error=message))

    # -- Introspection --------------------------------------------------------

    def record_snapshot(self, trace_line: str) -> StatusSnapshot:
        """Capture the process table after *trace_line* ran."""
        snapshot = StatusSnapshot(
            time=self._time,
            trace_line=trace_line,
            processes=tuple(p.snapshot() for p in self.processes),
        )
        self._snapshots.append(snapshot)
        return snapshot

    def partition_snapshot(self) -> list[Partition]:
        """Return copies of every partition in id order."""
        return self.partitions.snapshot()

    def process_snapshot(self) -> list[PcbSnapshot]:
        """Return a frozen view of every PCB in table order."""
        return [p.snapshot() for p in self.processes]
