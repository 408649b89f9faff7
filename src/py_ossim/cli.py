"""Command-line entry point.

Usage::

    py-ossim trace.txt vector_table.txt device_table.txt external_files.txt
             [--config config.json] [--output-dir DIR]

Every input is loaded before the kernel is created: a missing or
unreadable file prints the problem to stderr and exits with status 1
without writing anything.  Warnings and errors from the kernel log are
echoed to stderr after the run.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from py_ossim.engine import simulate
from py_ossim.loader import (
    LoadError,
    load_config,
    load_delay_table,
    load_external_files,
    load_trace,
    load_vector_table,
)
from py_ossim.logging import LogLevel
from py_ossim.report import write_outputs

if TYPE_CHECKING:
    from collections.abc import Sequence

EXIT_OK = 0
EXIT_LOAD_ERROR = 1


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the simulator."""
    parser = argparse.ArgumentParser(
        prog="py-ossim",
        description="Simulate the interrupt path, fork/exec and partition allocation of a trace.",
    )
    parser.add_argument("trace", type=Path, help="trace script (activity[,value] per line)")
    parser.add_argument("vectors", type=Path, help="vector table (one address per line)")
    parser.add_argument("delays", type=Path, help="device delay table (one duration per line)")
    parser.add_argument("external_files", type=Path, help="program catalog (name,size per line)")
    parser.add_argument("--config", type=Path, default=None, help="JSON configuration overrides")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(),
        help="directory for execution.txt and system_status.txt (default: .)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator and return the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        vectors = load_vector_table(args.vectors)
        delays = load_delay_table(args.delays)
        catalog = load_external_files(args.external_files)
        lines = load_trace(args.trace)
    except LoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    kernel = simulate(lines, vectors=vectors, delays=delays, catalog=catalog, config=config)

    for entry in kernel.logger.filter(min_level=LogLevel.WARNING):
        print(f"{entry.time}: {entry}", file=sys.stderr)

    execution_path, status_path = write_outputs(kernel, args.output_dir)
    print(f"Output generated in {execution_path} and {status_path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
