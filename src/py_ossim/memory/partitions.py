"""Fixed-partition memory — the partition table and first-fit allocation.

Before paging, many systems split physical memory into a handful of
**fixed partitions** at boot.  Each partition holds at most one
program; a program that is smaller than its partition wastes the rest
(**internal fragmentation**), and a program larger than every free
partition simply cannot be loaded.

Our partitions never shrink, grow, merge, or get reclaimed: an
occupant only ever moves from ``free`` to a program name.

First-fit:
    Scan partitions in ascending id order and take the first free one
    that is big enough.  Ties are always broken by the lowest id, which
    keeps traces reproducible run to run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

FREE = "free"
INIT = "init"


class PartitionError(ValueError):
    """Raise when the partition table is misused or misconfigured."""


@dataclass
class Partition:
    """One fixed memory partition.

    Attributes:
        id: Stable partition identifier.
        capacity_mb: Size in megabytes.
        occupant: ``"free"``, ``"init"`` or the loaded program's name.

    """

    id: int
    capacity_mb: int
    occupant: str = FREE

    @property
    def is_free(self) -> bool:
        """Return True if nothing is loaded in this partition."""
        return self.occupant == FREE


class PartitionTable:
    """The fixed set of partitions configured at boot.

    Partitions are kept sorted by id so that iteration order — and
    therefore first-fit order — never depends on configuration order.
    """

    def __init__(self, partitions: Iterable[Partition]) -> None:
        """Create a table from the configured partitions.

        Raises:
            PartitionError: If two partitions share an id.

        """
        ordered = sorted(partitions, key=lambda p: p.id)
        ids = [p.id for p in ordered]
        if len(ids) != len(set(ids)):
            msg = f"Duplicate partition ids in {ids}"
            raise PartitionError(msg)
        self._partitions: dict[int, Partition] = {p.id: p for p in ordered}

    def get(self, partition_id: int) -> Partition | None:
        """Return a partition by id, or None."""
        return self._partitions.get(partition_id)

    def find_first_fit(self, size_mb: int) -> int | None:
        """Return the id of the first free partition that fits, or None.

        This is a pure query — the caller marks the partition occupied.

        Args:
            size_mb: Required size in megabytes.

        """
        for partition in self._partitions.values():
            if partition.is_free and partition.capacity_mb >= size_mb:
                return partition.id
        return None

    def occupy(self, partition_id: int, program_name: str) -> Partition:
        """Load *program_name* into a free partition.

        Raises:
            PartitionError: If the partition does not exist or is taken,
                or the name is the free marker itself.

        """
        partition = self._partitions.get(partition_id)
        if partition is None:
            msg = f"Partition {partition_id} does not exist"
            raise PartitionError(msg)
        if not partition.is_free:
            msg = f"Partition {partition_id} is occupied by {partition.occupant}"
            raise PartitionError(msg)
        if program_name == FREE:
            msg = f"Cannot load a program named {FREE!r}"
            raise PartitionError(msg)
        partition.occupant = program_name
        return partition

    @property
    def free_count(self) -> int:
        """Return the number of free partitions."""
        return sum(1 for p in self._partitions.values() if p.is_free)

    def snapshot(self) -> list[Partition]:
        """Return copies of every partition in id order."""
        return [Partition(p.id, p.capacity_mb, p.occupant) for p in self._partitions.values()]

    def __iter__(self) -> Iterator[Partition]:
        """Iterate over partitions in ascending id order."""
        return iter(self._partitions.values())

    def __len__(self) -> int:
        """Return the number of partitions."""
        return len(self._partitions)
