"""Tests for the kernel log.

The logger records structured entries for what the simulator noticed
(boot, each record, recoverable problems), separate from the
execution trace of what the simulated machine did.
"""

from py_ossim.catalog import Catalog
from py_ossim.config import SimulationConfig
from py_ossim.io.interrupts import tables_from
from py_ossim.kernel import Kernel
from py_ossim.logging import LogEntry, Logger, LogLevel


def _booted_kernel() -> Kernel:
    """Create and boot a kernel for testing."""
    kernel = Kernel(
        config=SimulationConfig(),
        tables=tables_from(["0X01E3", "0X029C", "0X0695", "0X042B"], [5, 152, 110, 239]),
        catalog=Catalog.from_pairs([("program1", 10)]),
    )
    kernel.boot()
    return kernel


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry fields and formatting."""

    def test_entry_has_fields(self) -> None:
        """An entry carries level, message, source, pid and time."""
        entry = LogEntry(level=LogLevel.INFO, message="hi", source="kernel", pid=3, time=40)
        assert entry.level is LogLevel.INFO
        assert entry.pid == 3  # noqa: PLR2004
        assert entry.time == 40  # noqa: PLR2004

    def test_entry_str(self) -> None:
        """Entries render as ``[LEVEL] source: message``."""
        entry = LogEntry(level=LogLevel.WARNING, message="odd", source="engine")
        assert str(entry) == "[WARNING] engine: odd"


class TestLogger:
    """Verify the logger buffer."""

    def test_entries_are_ordered(self) -> None:
        """Entries come back in insertion order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="a")
        logger.log(LogLevel.INFO, "second", source="a")
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_filter_by_level(self) -> None:
        """min_level keeps entries at or above the level."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "d", source="a")
        logger.log(LogLevel.WARNING, "w", source="a")
        logger.log(LogLevel.ERROR, "e", source="a")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == ["w", "e"]

    def test_filter_by_source(self) -> None:
        """source keeps entries from one subsystem."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="engine")
        logger.log(LogLevel.INFO, "y", source="syscall")
        assert [e.message for e in logger.filter(source="syscall")] == ["y"]

    def test_filter_returns_copy(self) -> None:
        """Mutating a filter result leaves the log alone."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="a")
        logger.filter().clear()
        assert len(logger.entries) == 1


class TestKernelLogging:
    """Verify what the kernel logs."""

    def test_boot_is_logged(self) -> None:
        """Boot completion is an INFO entry."""
        messages = [e.message for e in _booted_kernel().logger.entries]
        assert "Kernel boot complete" in messages

    def test_fork_is_logged(self) -> None:
        """A successful fork is logged against the caller."""
        kernel = _booted_kernel()
        kernel.fork(0)
        entries = kernel.logger.filter(source="syscall")
        assert entries[-1].message == "fork: PID 0 created child PID 1"
        assert entries[-1].pid == 0

    def test_exec_is_logged_with_time(self) -> None:
        """Exec entries carry the time the body started."""
        kernel = _booted_kernel()
        kernel.cpu(7)
        kernel.exec(0, "program1")
        entry = kernel.logger.filter(source="syscall")[-1]
        assert entry.message == "exec: PID 0 loaded program1 into partition 1"
        assert entry.time == 7 + 13

    def test_dmesg_includes_log(self) -> None:
        """dmesg() ends with the formatted log entries."""
        log = _booted_kernel().dmesg()
        assert log[-1] == "[INFO] kernel: Kernel boot complete"
