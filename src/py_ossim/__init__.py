"""py_ossim — a discrete-event simulator of a kernel's interrupt path.

Feed it a trace script (CPU bursts, device interrupts, ``fork`` and
``exec`` calls) and it produces an exact, timestamped execution trace
plus the final partition and process tables.
"""

__version__ = "0.1.0"
