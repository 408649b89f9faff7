"""Process subsystem — PCBs, the process table and the ready queue.

Re-exports public symbols so callers can write::

    from py_ossim.process import Process, ProcessTable, Scheduler
"""

from py_ossim.process.pcb import PcbSnapshot, Priority, Process, ProcessState
from py_ossim.process.scheduler import (
    FCFSPolicy,
    PriorityPolicy,
    Scheduler,
    SchedulingPolicy,
    policy_for,
)
from py_ossim.process.table import INIT_PID, ProcessTable

__all__ = [
    "INIT_PID",
    "FCFSPolicy",
    "PcbSnapshot",
    "Priority",
    "PriorityPolicy",
    "Process",
    "ProcessState",
    "ProcessTable",
    "Scheduler",
    "SchedulingPolicy",
    "policy_for",
]
