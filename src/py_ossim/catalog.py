"""External-file catalog — the programs ``exec`` can load from disk.

The catalog is read once before the run and never changes.  Each entry
pairs a program name with its size in megabytes; the size decides which
partition the program fits in and how long the loader takes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_ossim.memory.partitions import FREE

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True)
class ExternalFile:
    """A program stored on the simulated disk."""

    program_name: str
    size_mb: int

    def __post_init__(self) -> None:
        """Reject entries that could never be loaded.

        Raises:
            ValueError: If the size is negative, or the name is empty or
                is the free-partition marker.

        """
        if self.size_mb < 0:
            msg = f"Program {self.program_name} has negative size {self.size_mb} MB"
            raise ValueError(msg)
        if not self.program_name or self.program_name == FREE:
            msg = f"Invalid program name {self.program_name!r}"
            raise ValueError(msg)


class Catalog:
    """Read-only lookup of programs by name.

    If a name appears more than once the first entry wins, matching a
    top-to-bottom scan of the catalog file.
    """

    def __init__(self, files: Iterable[ExternalFile] = ()) -> None:
        """Create a catalog from an iterable of entries."""
        self._files: tuple[ExternalFile, ...] = tuple(files)
        self._by_name: dict[str, ExternalFile] = {}
        for f in self._files:
            self._by_name.setdefault(f.program_name, f)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, int]]) -> Catalog:
        """Build a catalog from ``(program_name, size_mb)`` pairs."""
        return cls(ExternalFile(name, size) for name, size in pairs)

    def lookup(self, program_name: str) -> ExternalFile | None:
        """Return the entry for *program_name*, or None."""
        return self._by_name.get(program_name)

    def __contains__(self, program_name: object) -> bool:
        """Return True if the program is in the catalog."""
        return program_name in self._by_name

    def __iter__(self) -> Iterator[ExternalFile]:
        """Iterate over entries in catalog order."""
        return iter(self._files)

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._files)
