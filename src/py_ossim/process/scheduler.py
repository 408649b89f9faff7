"""Ready queue — PIDs waiting for the CPU, and the policy that orders them.

The scheduler owns the ready queue and delegates the *ordering*
decision to a pluggable SchedulingPolicy:

- **FCFSPolicy** (First Come, First Served): pure FIFO.  This is the
  default, and it is what the trace format expects — a forked child's
  CHILD priority is recorded but does not reorder anything.
- **PriorityPolicy**: highest priority first, FIFO among equals.  With
  it, a freshly forked child jumps ahead of older normal-priority
  entries.

Enqueue never reorders: the policy is consulted only when a PID is
taken off the queue with ``next()``.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

    from py_ossim.process.table import ProcessTable


class SchedulingPolicy(Protocol):
    """Interface every ready-queue ordering policy satisfies."""

    name: str

    def select(self, ready_queue: deque[int], priority_of: Callable[[int], int]) -> int | None:
        """Remove and return the next PID to run, or None if empty."""
        ...  # pragma: no cover


class FCFSPolicy:
    """First Come, First Served — PIDs leave in arrival order."""

    name = "fcfs"

    def select(self, ready_queue: deque[int], priority_of: Callable[[int], int]) -> int | None:  # noqa: ARG002
        """Pop the front of the queue (oldest arrival)."""
        if not ready_queue:
            return None
        return ready_queue.popleft()


class PriorityPolicy:
    """Priority — highest priority first, ties broken by arrival order."""

    name = "priority"

    def select(self, ready_queue: deque[int], priority_of: Callable[[int], int]) -> int | None:
        """Remove and return the highest-priority PID, or None."""
        if not ready_queue:
            return None
        best_idx = 0
        for i in range(1, len(ready_queue)):
            if priority_of(ready_queue[i]) > priority_of(ready_queue[best_idx]):
                best_idx = i
        pid = ready_queue[best_idx]
        del ready_queue[best_idx]
        return pid


POLICIES: dict[str, Callable[[], SchedulingPolicy]] = {
    FCFSPolicy.name: FCFSPolicy,
    PriorityPolicy.name: PriorityPolicy,
}


def policy_for(name: str) -> SchedulingPolicy:
    """Return a fresh policy instance by name.

    Raises:
        ValueError: If the name is not a known policy.

    """
    factory = POLICIES.get(name)
    if factory is None:
        msg = f"Unknown scheduling policy {name!r} (expected one of {sorted(POLICIES)})"
        raise ValueError(msg)
    return factory()


class Scheduler:
    """Own the ready queue of PIDs and hand them out by policy."""

    def __init__(self, *, processes: ProcessTable, policy: SchedulingPolicy | None = None) -> None:
        """Create a scheduler over *processes* with an empty ready queue.

        Args:
            processes: Table used to look up priorities.
            policy: Ordering policy (defaults to FCFS).

        """
        self._processes = processes
        self._policy: SchedulingPolicy = policy if policy is not None else FCFSPolicy()
        self._ready: deque[int] = deque()

    @property
    def policy(self) -> SchedulingPolicy:
        """Return the active policy."""
        return self._policy

    @property
    def ready_queue(self) -> list[int]:
        """Return the queued PIDs in insertion order."""
        return list(self._ready)

    def add(self, pid: int) -> None:
        """Append a PID to the back of the ready queue."""
        self._ready.append(pid)

    def next(self) -> int | None:
        """Take the next PID off the queue according to the policy."""
        return self._policy.select(self._ready, self._priority_of)

    def remove(self, pid: int) -> bool:
        """Take a specific PID off the queue.

        Returns:
            True if the PID was queued, False otherwise.

        """
        try:
            self._ready.remove(pid)
        except ValueError:
            return False
        return True

    def _priority_of(self, pid: int) -> int:
        process = self._processes.get(pid)
        return process.priority if process is not None else 0

    def __len__(self) -> int:
        """Return the number of queued PIDs."""
        return len(self._ready)
