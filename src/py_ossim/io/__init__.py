"""I/O subsystem — the interrupt path.

Re-exports public symbols so callers can write::

    from py_ossim.io import InterruptTables, handle_interrupt
"""

from py_ossim.io.interrupts import (
    InterruptKind,
    InterruptTables,
    OutOfRangeError,
    boilerplate,
    exit_sequence,
    handle_interrupt,
    tables_from,
)

__all__ = [
    "InterruptKind",
    "InterruptTables",
    "OutOfRangeError",
    "boilerplate",
    "exit_sequence",
    "handle_interrupt",
    "tables_from",
]
