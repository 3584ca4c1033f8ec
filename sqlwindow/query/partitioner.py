from typing import Dict, List, Sequence, Tuple, Any

from ..storage.row_store import RowStore

PartitionKey = Tuple[Any, ...]

def partition(store: RowStore, indices: Sequence[int],
              partition_by: Sequence[str]) -> Dict[PartitionKey, List[int]]:
    """Group row indices by their partition-by values.

    Keys compare by value with None equal to None, as SQL PARTITION BY groups
    nulls together. Partitions appear in the order their first row does and
    keep original row order inside.
    """
    if not partition_by:
        return {(): list(indices)}

    partitions: Dict[PartitionKey, List[int]] = {}
    for index in indices:
        row = store[index]
        key = tuple(row[col] for col in partition_by)
        if key not in partitions:
            partitions[key] = []
        partitions[key].append(index)

    return partitions
