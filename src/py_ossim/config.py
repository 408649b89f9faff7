"""Simulation configuration — the "kernel image" the simulator boots from.

Everything that is fixed for a run but not part of the input tables
lives here: the partition layout, the init process, and the fixed
costs of the interrupt path and the loader.  The defaults reproduce the
classic six-partition machine (40, 25, 15, 10, 8 MB free, plus 2 MB
reserved for init).
"""

from __future__ import annotations

from dataclasses import dataclass

from py_ossim.io.interrupts import ADDR_BASE, DEFAULT_CONTEXT_TIME, VECTOR_SIZE
from py_ossim.memory.partitions import FREE, INIT, Partition
from py_ossim.process.scheduler import POLICIES

LOADER_TIME_PER_MB = 15


@dataclass(frozen=True)
class PartitionSpec:
    """Configured size and initial occupant of one partition."""

    id: int
    capacity_mb: int
    occupant: str = FREE

    def build(self) -> Partition:
        """Return a fresh mutable partition for a new run."""
        return Partition(self.id, self.capacity_mb, self.occupant)


DEFAULT_PARTITIONS: tuple[PartitionSpec, ...] = (
    PartitionSpec(1, 40),
    PartitionSpec(2, 25),
    PartitionSpec(3, 15),
    PartitionSpec(4, 10),
    PartitionSpec(5, 8),
    PartitionSpec(6, 2, INIT),
)


@dataclass(frozen=True)
class SimulationConfig:
    """Boot-time configuration for a kernel.

    Attributes:
        partitions: Partition layout.
        init_program: Program name of the root process.
        init_partition: Partition the root process lives in (None = none).
        init_size_mb: Size of the root program.
        context_time: Cost of saving / restoring context.
        loader_time_per_mb: Loader cost per megabyte of program.
        vector_base: Base address of the vector table (display only).
        vector_entry_size: Bytes per vector entry (display only).
        scheduling_policy: ``"fcfs"`` or ``"priority"``.
        lineage: Show parent PIDs in the final report.

    """

    partitions: tuple[PartitionSpec, ...] = DEFAULT_PARTITIONS
    init_program: str = INIT
    init_partition: int | None = 6
    init_size_mb: int = 2
    context_time: int = DEFAULT_CONTEXT_TIME
    loader_time_per_mb: int = LOADER_TIME_PER_MB
    vector_base: int = ADDR_BASE
    vector_entry_size: int = VECTOR_SIZE
    scheduling_policy: str = "fcfs"
    lineage: bool = True

    def __post_init__(self) -> None:
        """Reject a configuration the kernel could not boot or run.

        Raises:
            ValueError: If a cost or size is negative, partition ids
                repeat, the init partition is not configured, or the
                scheduling policy is unknown.

        """
        costs = {
            "context_time": self.context_time,
            "loader_time_per_mb": self.loader_time_per_mb,
            "vector_base": self.vector_base,
            "vector_entry_size": self.vector_entry_size,
            "init_size": self.init_size_mb,
        }
        for name, value in costs.items():
            if value < 0:
                msg = f"{name} must not be negative (got {value})"
                raise ValueError(msg)
        ids = [p.id for p in self.partitions]
        if len(set(ids)) != len(ids):
            msg = f"Duplicate partition ids in {ids}"
            raise ValueError(msg)
        for p in self.partitions:
            if p.capacity_mb < 0:
                msg = f"Partition {p.id} has negative size {p.capacity_mb} MB"
                raise ValueError(msg)
        if self.init_partition is not None and self.init_partition not in ids:
            msg = f"Init partition {self.init_partition} is not configured"
            raise ValueError(msg)
        if self.scheduling_policy not in POLICIES:
            msg = f"Unknown scheduling policy {self.scheduling_policy!r}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""
        return {
            "partitions": [
                {"id": p.id, "size": p.capacity_mb, "code": p.occupant} for p in self.partitions
            ],
            "init_program": self.init_program,
            "init_partition": self.init_partition,
            "init_size": self.init_size_mb,
            "context_time": self.context_time,
            "loader_time_per_mb": self.loader_time_per_mb,
            "vector_base": self.vector_base,
            "vector_entry_size": self.vector_entry_size,
            "scheduling_policy": self.scheduling_policy,
            "lineage": self.lineage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> SimulationConfig:
        """Build a config from a parsed JSON object; missing keys use defaults.

        Raises:
            KeyError: If a partition entry lacks ``id`` or ``size``.
            TypeError / ValueError: If a value has the wrong type.

        """
        defaults = cls()
        raw_partitions = data.get("partitions")
        if raw_partitions is None:
            partitions = defaults.partitions
        else:
            partitions = tuple(
                PartitionSpec(int(p["id"]), int(p["size"]), str(p.get("code", FREE)))
                for p in raw_partitions  # type: ignore[union-attr]
            )
        init_partition = data.get("init_partition", defaults.init_partition)
        return cls(
            partitions=partitions,
            init_program=str(data.get("init_program", defaults.init_program)),
            init_partition=None if init_partition is None else int(init_partition),  # type: ignore[arg-type]
            init_size_mb=int(data.get("init_size", defaults.init_size_mb)),  # type: ignore[arg-type]
            context_time=int(data.get("context_time", defaults.context_time)),  # type: ignore[arg-type]
            loader_time_per_mb=int(data.get("loader_time_per_mb", defaults.loader_time_per_mb)),  # type: ignore[arg-type]
            vector_base=int(data.get("vector_base", defaults.vector_base)),  # type: ignore[arg-type]
            vector_entry_size=int(data.get("vector_entry_size", defaults.vector_entry_size)),  # type: ignore[arg-type]
            scheduling_policy=str(data.get("scheduling_policy", defaults.scheduling_policy)),
            lineage=bool(data.get("lineage", defaults.lineage)),
        )
