from collections import defaultdict
from typing import Dict, Iterable, List

from .types import LogRecord, Partition


def partition_by_status(records: Iterable[LogRecord]) -> Dict[int, Partition]:
    """
    Stable group-by on status code.

    Partitions come back in the order their status was first seen
    and each keeps its records in input order. Nothing is dropped
    or duplicated.
    """
    groups: Dict[int, List[LogRecord]] = defaultdict(list)

    for record in records:
        groups[record.status].append(record)

    return {
        status: Partition(status=status, records=tuple(members))
        for status, members in groups.items()
    }


def partition_counts(partitions: Dict[int, Partition]) -> Dict[int, int]:
    return {status: len(p) for status, p in sorted(partitions.items())}
