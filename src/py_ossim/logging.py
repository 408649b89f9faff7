"""Kernel log — the simulator's dmesg.

The execution trace records *what the simulated machine did*.  The
kernel log records *what the simulator noticed*: boot messages, each
dispatched trace record, and every recoverable problem (malformed
records, unknown programs, full memory).

Entries are stamped with simulated time, not wall-clock time, so two
runs of the same script produce the same log.

- **LogLevel** — DEBUG < INFO < WARNING < ERROR.
- **LogEntry** — one record: level, message, source, pid and time.
- **Logger** — the run's append-only buffer, filtered by level or source.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity of a kernel log entry."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One kernel log record.

    Attributes:
        level: Severity.
        message: What happened, in words.
        source: Subsystem that noticed it (``kernel``, ``engine``,
            ``syscall`` or ``interrupt``).
        pid: Process concerned (0 for init and system events).
        time: Simulated time when it was logged.

    """

    level: LogLevel
    message: str
    source: str
    pid: int = 0
    time: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Collect a run's log entries in the order they happen."""

    def __init__(self) -> None:
        """Create an empty log."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of every entry, oldest first."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        pid: int = 0,
        time: int = 0,
    ) -> None:
        """Record one event at simulated *time* on behalf of *pid*."""
        self._entries.append(LogEntry(level=level, message=message, source=source, pid=pid, time=time))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return the entries at or above *min_level* from *source*.

        Either criterion may be omitted; the result is always a new list.
        """
        return [
            e
            for e in self._entries
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
        ]
