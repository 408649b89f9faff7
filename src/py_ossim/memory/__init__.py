"""Memory subsystem — fixed partitions and first-fit allocation.

Re-exports public symbols so callers can write::

    from py_ossim.memory import Partition, PartitionTable
"""

from py_ossim.memory.partitions import FREE, INIT, Partition, PartitionError, PartitionTable

__all__ = [
    "FREE",
    "INIT",
    "Partition",
    "PartitionError",
    "PartitionTable",
]
