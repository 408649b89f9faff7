"""Tests for the interrupt path primitives and sequences."""

import pytest

from py_ossim.io.interrupts import (
    InterruptKind,
    InterruptTables,
    OutOfRangeError,
    boilerplate,
    exit_sequence,
    handle_interrupt,
    load_handler_address,
    locate_vector,
    restore_context,
    return_from_interrupt,
    run_isr,
    save_context,
    switch_to_kernel_mode,
    switch_to_user_mode,
    tables_from,
    vector_address,
)

VECTORS = ("0X01E3", "0X029C", "0X0695", "0X042B")
DELAYS = (5, 152, 110, 239)
TABLES = InterruptTables(vectors=VECTORS, delays=DELAYS)

BOILERPLATE_TICKS = 13
EXIT_TICKS = 12
CUSTOM_CONTEXT = 20


class TestPrimitives:
    """Each primitive costs exactly its documented ticks."""

    def test_switch_to_kernel_mode(self) -> None:
        """Kernel-mode switch costs 1 tick."""
        step = switch_to_kernel_mode(0)
        assert step.time == 1
        assert str(step.events[0]) == "0, 1, switch to kernel mode"

    def test_save_context_default(self) -> None:
        """Saving context costs 10 ticks by default."""
        step = save_context(1)
        assert str(step.events[0]) == "1, 10, context saved"
        assert step.time == 11  # noqa: PLR2004

    def test_save_context_custom(self) -> None:
        """The context cost is a parameter."""
        step = save_context(0, context_time=CUSTOM_CONTEXT)
        assert step.time == CUSTOM_CONTEXT

    def test_locate_vector_address(self) -> None:
        """Vector n is displayed at base + 2n."""
        step = locate_vector(11, 2)
        assert str(step.events[0]) == "11, 1, find vector 2 in memory position 0x0004"

    def test_vector_address_is_hex_padded(self) -> None:
        """Addresses are four upper-case hex digits."""
        assert vector_address(13) == "0x001A"
        assert vector_address(1, base=0x100, entry_size=4) == "0x0104"

    def test_load_handler_address(self) -> None:
        """The handler address comes from the vector table."""
        step = load_handler_address(12, 3, TABLES)
        assert str(step.events[0]) == "12, 1, load address 0X042B into the PC"
        assert step.ok

    def test_load_handler_address_out_of_range(self) -> None:
        """An unknown vector is reported as an error line, not a crash."""
        step = load_handler_address(12, 9, TABLES)
        assert not step.ok
        assert step.events[0].description.startswith("ERROR: vector 9 out of range")
        assert step.time == 13  # noqa: PLR2004

    def test_run_isr_uses_delay(self) -> None:
        """ISR cost is the device's delay."""
        step = run_isr(13, 1, InterruptKind.SYSCALL, TABLES)
        assert str(step.events[0]) == "13, 152, SYSCALL: run the ISR"
        assert step.time == 13 + 152

    def test_run_isr_out_of_range(self) -> None:
        """An unknown device is reported as an error line."""
        step = run_isr(0, len(DELAYS), InterruptKind.END_IO, TABLES)
        assert not step.ok
        assert "device 4 out of range" in step.events[0].description

    def test_negative_device_is_out_of_range(self) -> None:
        """Negative numbers never wrap around to the end of a table."""
        with pytest.raises(OutOfRangeError):
            TABLES.isr_delay(-1)
        with pytest.raises(OutOfRangeError):
            TABLES.handler_address(-1)

    def test_exit_primitives(self) -> None:
        """IRET 1, restore 10, user mode 1."""
        assert str(return_from_interrupt(0).events[0]) == "0, 1, IRET"
        assert str(restore_context(1).events[0]) == "1, 10, context restored"
        assert str(switch_to_user_mode(11).events[0]) == "11, 1, switch to user mode"


class TestSequences:
    """Verify boilerplate, exit and full interrupt sequences."""

    def test_boilerplate_order_and_cost(self) -> None:
        """Boilerplate is kernel → save → locate → load, 13 ticks."""
        step = boilerplate(100, 0, TABLES)
        assert [str(e) for e in step.events] == [
            "100, 1, switch to kernel mode",
            "101, 10, context saved",
            "111, 1, find vector 0 in memory position 0x0000",
            "112, 1, load address 0X01E3 into the PC",
        ]
        assert step.time == 100 + BOILERPLATE_TICKS

    def test_exit_sequence_cost(self) -> None:
        """Exit is IRET → restore → user mode, 12 ticks."""
        step = exit_sequence(0)
        assert [e.description for e in step.events] == [
            "IRET",
            "context restored",
            "switch to user mode",
        ]
        assert step.time == EXIT_TICKS

    def test_handle_interrupt_total(self) -> None:
        """SYSCALL on device 0 with delay 5 costs 13 + 5 + 12 = 30."""
        tables = tables_from(["0X01E3"], [5])
        step = handle_interrupt(0, 0, InterruptKind.SYSCALL, tables)
        assert step.time == 30  # noqa: PLR2004
        assert len(step.events) == 8  # noqa: PLR2004
        assert step.events[4].description == "SYSCALL: run the ISR"

    def test_handle_interrupt_bad_vector_skips_isr(self) -> None:
        """A failed vector lookup skips the ISR but still exits."""
        tables = tables_from(["0X01E3"], [5, 6, 7])
        step = handle_interrupt(0, 2, InterruptKind.END_IO, tables)
        descriptions = [e.description for e in step.events]
        assert not step.ok
        assert "END_IO: run the ISR" not in descriptions
        assert descriptions[-3:] == ["IRET", "context restored", "switch to user mode"]
        assert step.time == BOILERPLATE_TICKS + EXIT_TICKS

    def test_handle_interrupt_bad_device(self) -> None:
        """A vector that exists but a device that doesn't: error ISR line."""
        tables = tables_from(["a", "b"], [5])
        step = handle_interrupt(0, 1, InterruptKind.SYSCALL, tables)
        assert not step.ok
        assert step.events[4].description.startswith("ERROR: device 1 out of range")

    def test_clock_is_non_decreasing(self) -> None:
        """Every event starts exactly where the previous one ended."""
        step = handle_interrupt(50, 3, InterruptKind.SYSCALL, TABLES)
        for before, after in zip(step.events, step.events[1:], strict=False):
            assert after.time == before.time + before.duration


class TestTables:
    """Verify table validation."""

    def test_negative_delay_rejected(self) -> None:
        """A negative ISR delay would run the clock backwards."""
        with pytest.raises(ValueError, match="device 1: negative delay -4"):
            tables_from(["a", "b"], [5, -4])
