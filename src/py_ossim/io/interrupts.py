"""Interrupt path — the fixed protocol every interrupt and syscall follows.

When a device raises an interrupt (or a program traps into the kernel
with a syscall) the CPU runs the same entry sequence every time:

1. **Switch to kernel mode** — flip the mode bit.
2. **Save context** — stash the interrupted program's registers.
3. **Find the vector** — compute where the vector-table entry lives.
4. **Load the handler address** — copy the entry into the PC.

Then the device-specific **ISR** runs, and the exit sequence undoes the
entry: **IRET**, **restore context**, **switch to user mode**.

Every function here is pure: it takes the current time (plus whatever
tables it needs) and returns a ``Step`` with the trace events it
produced and the new time.  Nothing reads or writes global state, so
the ordering of a protocol is exactly the order of the ``then()`` calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING

from py_ossim.trace import Step, emit

if TYPE_CHECKING:
    from collections.abc import Sequence

MODE_SWITCH_TIME = 1
DEFAULT_CONTEXT_TIME = 10
VECTOR_LOOKUP_TIME = 1
IRET_TIME = 1
ERROR_TIME = 1

# Vector table layout: entry n lives at base + n * entry size
ADDR_BASE = 0
VECTOR_SIZE = 2


class OutOfRangeError(LookupError):
    """Raise when an interrupt or device number is outside its table."""


class InterruptKind(StrEnum):
    """The two trace activities that run a device ISR."""

    SYSCALL = "SYSCALL"
    END_IO = "END_IO"


@dataclass(frozen=True)
class InterruptTables:
    """The read-only tables the interrupt path is parameterised by.

    Attributes:
        vectors: Symbolic handler address per interrupt number.
        delays: ISR duration in ticks per device number.

    """

    vectors: tuple[str, ...]
    delays: tuple[int, ...]

    def __post_init__(self) -> None:
        """Reject delays that would run the clock backwards.

        Raises:
            ValueError: If any device delay is negative.

        """
        for device_number, delay in enumerate(self.delays):
            if delay < 0:
                msg = f"device {device_number}: negative delay {delay}"
                raise ValueError(msg)

    def handler_address(self, interrupt_number: int) -> str:
        """Return the handler address for an interrupt number.

        Raises:
            OutOfRangeError: If the number is not in the vector table.

        """
        if not 0 <= interrupt_number < len(self.vectors):
            msg = (
                f"vector {interrupt_number} out of range "
                f"(vector table has {len(self.vectors)} entries)"
            )
            raise OutOfRangeError(msg)
        return self.vectors[interrupt_number]

    def isr_delay(self, device_number: int) -> int:
        """Return the ISR duration for a device.

        Raises:
            OutOfRangeError: If the number is not in the delay table.

        """
        if not 0 <= device_number < len(self.delays):
            msg = (
                f"device {device_number} out of range "
                f"(delay table has {len(self.delays)} entries)"
            )
            raise OutOfRangeError(msg)
        return self.delays[device_number]


def vector_address(interrupt_number: int, *, base: int = ADDR_BASE, entry_size: int = VECTOR_SIZE) -> str:
    """Return the display address of a vector entry, e.g. ``0x0004``."""
    return f"0x{base + interrupt_number * entry_size:04X}"


def error_line(time: int, message: str) -> Step:
    """Record a recoverable error as a single trace event."""
    return emit(time, ERROR_TIME, f"ERROR: {message}", error=message)


def switch_to_kernel_mode(time: int) -> Step:
    """Set the mode bit to kernel."""
    return emit(time, MODE_SWITCH_TIME, "switch to kernel mode")


def save_context(time: int, *, context_time: int = DEFAULT_CONTEXT_TIME) -> Step:
    """Save the interrupted program's registers."""
    return emit(time, context_time, "context saved")


def locate_vector(
    time: int,
    interrupt_number: int,
    *,
    base: int = ADDR_BASE,
    entry_size: int = VECTOR_SIZE,
) -> Step:
    """Compute where the vector lives in memory (for display only)."""
    address = vector_address(interrupt_number, base=base, entry_size=entry_size)
    return emit(
        time,
        VECTOR_LOOKUP_TIME,
        f"find vector {interrupt_number} in memory position {address}",
    )


def load_handler_address(time: int, interrupt_number: int, tables: InterruptTables) -> Step:
    """Load the ISR address into the PC.

    An out-of-range vector is reported as an error event of the same
    cost; the returned step carries the error so callers can skip the
    ISR body.
    """
    try:
        address = tables.handler_address(interrupt_number)
    except OutOfRangeError as e:
        return error_line(time, str(e))
    return emit(time, VECTOR_LOOKUP_TIME, f"load address {address} into the PC")


def run_isr(time: int, device_number: int, kind: str, tables: InterruptTables) -> Step:
    """Run the device's interrupt service routine."""
    try:
        delay = tables.isr_delay(device_number)
    except OutOfRangeError as e:
        return error_line(time, str(e))
    return emit(time, delay, f"{kind}: run the ISR")


def return_from_interrupt(time: int) -> Step:
    """Execute IRET."""
    return emit(time, IRET_TIME, "IRET")


def restore_context(time: int, *, context_time: int = DEFAULT_CONTEXT_TIME) -> Step:
    """Restore the interrupted program's registers."""
    return emit(time, context_time, "context restored")


def switch_to_user_mode(time: int) -> Step:
    """Set the mode bit back to user."""
    return emit(time, MODE_SWITCH_TIME, "switch to user mode")


def boilerplate(
    time: int,
    interrupt_number: int,
    tables: InterruptTables,
    *,
    context_time: int = DEFAULT_CONTEXT_TIME,
    base: int = ADDR_BASE,
    entry_size: int = VECTOR_SIZE,
) -> Step:
    """Run the interrupt entry sequence (13 ticks with default costs).

    Kernel mode → save context → locate vector → load handler address.
    """
    return (
        switch_to_kernel_mode(time)
        .then(partial(save_context, context_time=context_time))
        .then(partial(locate_vector, interrupt_number=interrupt_number, base=base, entry_size=entry_size))
        .then(partial(load_handler_address, interrupt_number=interrupt_number, tables=tables))
    )


def exit_sequence(time: int, *, context_time: int = DEFAULT_CONTEXT_TIME) -> Step:
    """Run the interrupt exit sequence (12 ticks with default costs).

    IRET → restore context → user mode.
    """
    return (
        return_from_interrupt(time)
        .then(partial(restore_context, context_time=context_time))
        .then(switch_to_user_mode)
    )


def handle_interrupt(
    time: int,
    device_number: int,
    kind: str,
    tables: InterruptTables,
    *,
    context_time: int = DEFAULT_CONTEXT_TIME,
    base: int = ADDR_BASE,
    entry_size: int = VECTOR_SIZE,
) -> Step:
    """Run a complete device interrupt: boilerplate, ISR, exit sequence.

    If the vector lookup fails the ISR is skipped, but the exit
    sequence still runs so the trace stays well-formed.
    """
    step = boilerplate(
        time,
        device_number,
        tables,
        context_time=context_time,
        base=base,
        entry_size=entry_size,
    )
    if step.ok:
        step = step.then(partial(run_isr, device_number=device_number, kind=kind, tables=tables))
    return step.then(partial(exit_sequence, context_time=context_time))


def tables_from(vectors: Sequence[str], delays: Sequence[int]) -> InterruptTables:
    """Freeze loaded vector and delay sequences into ``InterruptTables``."""
    return InterruptTables(vectors=tuple(vectors), delays=tuple(delays))
