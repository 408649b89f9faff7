"""System calls — ``fork`` and ``exec`` on top of the interrupt path.

A syscall is a software interrupt.  The caller traps into the kernel
through the same boilerplate a device interrupt uses (with its own
vector number), the kernel does the work, and the common exit sequence
returns to user mode.

1. ``SyscallNumber`` — the vector each syscall traps through.
2. ``SyscallError`` and subclasses — recoverable failures.  A handler
   raises them internally and catches them at its own boundary, where
   they become one ``ERROR:`` trace line.  Nothing unwinds past a
   handler: the exit sequence always runs and the caller always gets a
   ``Step`` back.
3. ``handle_fork()`` / ``handle_exec()`` — the handlers.
4. ``dispatch_syscall()`` — route a syscall number to its handler.

Every handler checks everything it needs *before* mutating anything,
so a failing call leaves the partition and process tables untouched.
"""

from __future__ import annotations

from enum import IntEnum
from functools import partial
from typing import TYPE_CHECKING, Any

from py_ossim.io.interrupts import boilerplate, error_line, exit_sequence
from py_ossim.logging import LogLevel
from py_ossim.trace import Step, emit

if TYPE_CHECKING:
    from py_ossim.kernel import Kernel

CLONE_TIME = 1
OCCUPY_TIME = 1
PCB_UPDATE_TIME = 3
SCHEDULER_TIME = 0


class SyscallNumber(IntEnum):
    """The interrupt vector each system call traps through."""

    SYS_FORK = 2
    SYS_EXEC = 3


class SyscallError(Exception):
    """Raise when a system call cannot complete (recoverable)."""


class ProcessNotFoundError(SyscallError):
    """Raise when the calling PID is not in the process table."""


class ProgramNotFoundError(SyscallError):
    """Raise when ``exec`` names a program missing from the catalog."""


class NoPartitionAvailableError(SyscallError):
    """Raise when no free partition is large enough for a program."""


def scheduler_called(time: int) -> Step:
    """Log that the scheduler ran (a zero-cost marker)."""
    return emit(time, SCHEDULER_TIME, "scheduler called")


def _entry(kernel: Kernel, time: int, number: SyscallNumber) -> Step:
    cfg = kernel.config
    return boilerplate(
        time,
        int(number),
        kernel.tables,
        context_time=cfg.context_time,
        base=cfg.vector_base,
        entry_size=cfg.vector_entry_size,
    )


def _run_body(kernel: Kernel, step: Step, body: partial[Step], *, name: str, pid: int) -> Step:
    """Run a handler body after a successful entry, converting failures.

    Returns the chain with either the body's events or a single error
    line, followed by the exit sequence.
    """
    if step.ok:
        try:
            step = step.then(body)
        except SyscallError as e:
            kernel.logger.log(LogLevel.ERROR, f"{name}: {e}", source="syscall", pid=pid, time=step.time)
            step = step.then(partial(error_line, message=str(e)))
    else:
        kernel.logger.log(
            LogLevel.ERROR, f"{name}: {step.error}", source="interrupt", pid=pid, time=step.time
        )
    return step.then(partial(exit_sequence, context_time=kernel.config.context_time))


def _fork(kernel: Kernel, time: int, *, caller_pid: int) -> Step:
    parent = kernel.processes.get(caller_pid)
    if parent is None:
        msg = f"Process {caller_pid} not found"
        raise ProcessNotFoundError(msg)

    child = parent.clone(pid=kernel.processes.allocate_pid())
    kernel.processes.add(child)
    kernel.scheduler.add(child.pid)
    kernel.logger.log(
        LogLevel.INFO,
        f"fork: PID {caller_pid} created child PID {child.pid}",
        source="syscall",
        pid=caller_pid,
        time=time,
    )
    return emit(time, CLONE_TIME, "PCB cloned for child process").then(scheduler_called)


def handle_fork(kernel: Kernel, time: int, *, caller_pid: int) -> Step:
    """Handle ``fork`` for *caller_pid* (vector 2).

    Clone the caller's PCB under the next PID, make the caller its
    parent, mark it CHILD priority and READY, register it in the
    process table and the parent→children index, and enqueue it.

    Returns:
        The full trace of the call, from kernel-mode switch to user mode.

    """
    step = _entry(kernel, time, SyscallNumber.SYS_FORK)
    return _run_body(
        kernel,
        step,
        partial(_fork, kernel, caller_pid=caller_pid),
        name="fork",
        pid=caller_pid,
    )


def _exec(kernel: Kernel, time: int, *, caller_pid: int, program_name: str) -> Step:
    process = kernel.processes.get(caller_pid)
    if process is None:
        msg = f"Process {caller_pid} not found"
        raise ProcessNotFoundError(msg)

    program = kernel.catalog.lookup(program_name)
    if program is None:
        msg = f"Program not found: {program_name}"
        raise ProgramNotFoundError(msg)

    partition_id = kernel.partitions.find_first_fit(program.size_mb)
    if partition_id is None:
        msg = f"No partition available for {program_name} ({program.size_mb} MB)"
        raise NoPartitionAvailableError(msg)

    loader_time = program.size_mb * kernel.config.loader_time_per_mb
    step = (
        emit(time, loader_time, f"loading {program_name} from disk to partition {partition_id}")
        .then(partial(emit, duration=OCCUPY_TIME, description=f"partition {partition_id} marked as occupied"))
        .then(partial(emit, duration=PCB_UPDATE_TIME, description="PCB updated with new program info"))
    )
    kernel.partitions.occupy(partition_id, program_name)
    process.load_program(
        program_name=program_name,
        partition_id=partition_id,
        size_mb=program.size_mb,
    )
    kernel.logger.log(
        LogLevel.INFO,
        f"exec: PID {caller_pid} loaded {program_name} into partition {partition_id}",
        source="syscall",
        pid=caller_pid,
        time=time,
    )
    return step.then(scheduler_called)


def handle_exec(kernel: Kernel, time: int, *, caller_pid: int, program_name: str) -> Step:
    """Handle ``exec`` of *program_name* for *caller_pid* (vector 3).

    Look the program up in the catalog, pick a partition first-fit,
    load the program (``size × loader cost`` ticks), mark the partition
    occupied and rewrite the caller's PCB in place.

    Returns:
        The full trace of the call, from kernel-mode switch to user mode.

    """
    step = _entry(kernel, time, SyscallNumber.SYS_EXEC)
    return _run_body(
        kernel,
        step,
        partial(_exec, kernel, caller_pid=caller_pid, program_name=program_name),
        name="exec",
        pid=caller_pid,
    )


def dispatch_syscall(kernel: Kernel, number: SyscallNumber, time: int, **kwargs: Any) -> Step:
    """Route a syscall number to its handler.

    Raises:
        ValueError: If the number is not a known syscall.

    """
    match number:
        case SyscallNumber.SYS_FORK:
            return handle_fork(kernel, time, caller_pid=kwargs["caller_pid"])
        case SyscallNumber.SYS_EXEC:
            return handle_exec(
                kernel,
                time,
                caller_pid=kwargs["caller_pid"],
                program_name=kwargs["program_name"],
            )
        case _:
            msg = f"Unknown syscall number: {number}"
            raise ValueError(msg)
