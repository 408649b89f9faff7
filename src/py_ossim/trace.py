"""Execution trace — the simulator's append-only event log.

Every protocol step the kernel performs leaves exactly one record
behind: *when* it started, *how long* it took, and *what* happened.
Records are kept structured (``TraceEvent``) for the whole run and only
turned into text at the output boundary, so tests can assert on times
and durations instead of matching substrings.

The clock is never hidden in global state.  Each primitive receives the
current time and returns a ``Step`` — the events it produced plus the
time at which it finished.  Steps chain with ``then()``, which makes
the ordering of a protocol visible in the code that builds it::

    step = switch_to_kernel_mode(0).then(save_context)
    assert step.time == 11
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator


@dataclass(frozen=True)
class TraceEvent:
    """A single timed entry in the execution trace.

    Attributes:
        time: Simulated time at which the step started.
        duration: Ticks the step consumed (0 for pure markers).
        description: Human-readable text, reproduced verbatim in output.

    """

    time: int
    duration: int
    description: str

    def __str__(self) -> str:
        """Format as ``<time>, <duration>, <description>``."""
        return f"{self.time}, {self.duration}, {self.description}"


@dataclass(frozen=True)
class Step:
    """The outcome of one or more chained protocol primitives.

    Attributes:
        events: Trace records produced, in order.
        time: Clock value after the last event.
        error: Description of the first recoverable failure, if any.

    """

    events: tuple[TraceEvent, ...]
    time: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return True when no step in the chain reported an error."""
        return self.error is None

    @property
    def duration(self) -> int:
        """Return the total ticks consumed by the chain."""
        return sum(e.duration for e in self.events)

    def then(self, fn: Callable[[int], Step]) -> Step:
        """Run *fn* at this step's finish time and concatenate the results.

        The first error in the chain wins; later steps still run so the
        clock stays consistent.
        """
        nxt = fn(self.time)
        return Step(
            events=self.events + nxt.events,
            time=nxt.time,
            error=self.error if self.error is not None else nxt.error,
        )


def emit(time: int, duration: int, description: str, *, error: str | None = None) -> Step:
    """Record one event at *time* and advance the clock by *duration*.

    Args:
        time: Current simulated time.
        duration: Cost of the event in ticks (must not be negative).
        description: Trace text.
        error: Optional error tag to carry along the chain.

    Raises:
        ValueError: If duration is negative — the clock never runs backwards.

    """
    if duration < 0:
        msg = f"Negative duration {duration} for {description!r}"
        raise ValueError(msg)
    return Step(events=(TraceEvent(time, duration, description),), time=time + duration, error=error)


class Trace:
    """Append-only, ordered sequence of trace events."""

    def __init__(self) -> None:
        """Create an empty trace."""
        self._events: list[TraceEvent] = []

    @property
    def events(self) -> list[TraceEvent]:
        """Return all events in chronological order."""
        return list(self._events)

    def extend(self, events: Iterable[TraceEvent]) -> None:
        """Append events, refusing any that would move the clock backwards.

        Raises:
            ValueError: If an event starts before the previous one ends.

        """
        for event in events:
            if self._events:
                last = self._events[-1]
                if event.time < last.time + last.duration:
                    msg = f"Event at {event.time} precedes end of previous event ({last})"
                    raise ValueError(msg)
            self._events.append(event)

    def lines(self) -> list[str]:
        """Render every event as an output line (without newline)."""
        return [str(e) for e in self._events]

    def __len__(self) -> int:
        """Return the number of recorded events."""
        return len(self._events)

    def __iter__(self) -> Iterator[TraceEvent]:
        """Iterate over events in order."""
        return iter(self._events)
