"""Input loader — read the simulator's tables and trace from disk.

A run needs four text files and, optionally, a JSON configuration:

- **vector table** — one handler address per line (line n = vector n).
- **delay table** — one ISR duration per line (line n = device n).
- **external files** — ``name,size`` per line: the programs on disk.
- **trace** — the script of activities, one record per line.
- **config** — JSON ``SimulationConfig`` overrides.

Loading is the only *fatal* stage of the simulator.  If any file is
missing, unreadable or unparsable a ``LoadError`` is raised before any
kernel state exists, so there is never a partial trace.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

from py_ossim.catalog import Catalog, ExternalFile
from py_ossim.config import SimulationConfig

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class LoadError(RuntimeError):
    """Raise when an input file cannot be loaded.

    Examples: missing trace file, non-numeric delay, corrupt config.
    """


def _read_lines(path: Path) -> list[str]:
    """Return the non-blank, stripped lines of a text file.

    Raises:
        LoadError: If the file cannot be read.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Unable to open file: {path} ({e.strerror or e})"
        raise LoadError(msg) from e
    return [line.strip() for line in text.splitlines() if line.strip()]


def load_vector_table(path: Path) -> list[str]:
    """Load the interrupt vector table (one address per line).

    Raises:
        LoadError: If the file cannot be read.

    """
    return _read_lines(path)


def load_delay_table(path: Path) -> list[int]:
    """Load the device delay table (one non-negative integer per line).

    Raises:
        LoadError: If the file cannot be read or a line is not a
            non-negative integer.

    """
    delays: list[int] = []
    for number, line in enumerate(_read_lines(path)):
        try:
            delay = int(line)
        except ValueError as e:
            msg = f"{path}: device {number}: invalid delay {line!r}"
            raise LoadError(msg) from e
        if delay < 0:
            msg = f"{path}: device {number}: negative delay {delay}"
            raise LoadError(msg)
        delays.append(delay)
    return delays


def load_external_files(path: Path) -> Catalog:
    """Load the external-file catalog (``program_name,size`` per line).

    Raises:
        LoadError: If the file cannot be read, a line is malformed, or
            an entry has a negative size or a reserved name.

    """
    files: list[ExternalFile] = []
    for line in _read_lines(path):
        name, sep, size = line.partition(",")
        if not sep or not name.strip():
            msg = f"{path}: malformed catalog entry {line!r}"
            raise LoadError(msg)
        try:
            size_mb = int(size.strip())
        except ValueError as e:
            msg = f"{path}: invalid size in catalog entry {line!r}"
            raise LoadError(msg) from e
        try:
            files.append(ExternalFile(name.strip(), size_mb))
        except ValueError as e:
            msg = f"{path}: {e}"
            raise LoadError(msg) from e
    return Catalog(files)


def load_trace(path: Path) -> Iterator[str]:
    """Return the trace script's lines, read lazily.

    The file is checked for readability up front so a missing trace is
    a startup failure, not a mid-run one.  It is only opened once the
    first line is requested, and closed when iteration ends.

    Raises:
        LoadError: If the file does not exist or cannot be read.

    """
    if not path.is_file() or not os.access(path, os.R_OK):
        msg = f"Unable to open file: {path} (not a readable file)"
        raise LoadError(msg)

    def _lines() -> Iterator[str]:
        try:
            handle = path.open(encoding="utf-8")
        except OSError as e:
            msg = f"Unable to open file: {path} ({e.strerror or e})"
            raise LoadError(msg) from e
        with handle:
            for line in handle:
                yield line.rstrip("\r\n")

    return _lines()


def load_config(path: Path | None) -> SimulationConfig:
    """Load a JSON configuration, or the defaults when *path* is None.

    Raises:
        LoadError: If the file cannot be read or does not describe a
            valid configuration.

    """
    if path is None:
        return SimulationConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load config: {e}"
        raise LoadError(msg) from e
    if not isinstance(data, dict):
        msg = f"Cannot load config: {path} must contain a JSON object"
        raise LoadError(msg)
    try:
        return SimulationConfig.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        msg = f"Cannot load config: invalid value ({e})"
        raise LoadError(msg) from e
