from typing import Any, List, Sequence, Tuple

from ..schema.types import TypeConverter
from ..schema.window import OrderSpec
from ..storage.row_store import RowStore
from ..utils.exceptions import TypeMismatchError

def order_key(store: RowStore, index: int, order_by: OrderSpec) -> Tuple[Any, ...]:
    row = store[index]
    return tuple(row[item.column] for item in order_by)

def order(store: RowStore, partition: Sequence[int], order_by: OrderSpec,
          nulls_largest: bool = True) -> List[int]:
    """Return the partition's indices sorted by `order_by`.

    One stable pass per column, last column first, so earlier columns end up
    as the primary keys and full ties keep their incoming order.
    """
    ordered = list(partition)
    if not order_by:
        return ordered

    for item in reversed(order_by.items):
        column = item.column
        nulls = [i for i in ordered if store[i][column] is None]
        values = [i for i in ordered if store[i][column] is not None]
        _check_comparable(store, values, column)

        values.sort(key=lambda i: store[i][column], reverse=item.descending)
        if item.resolve_nulls_first(nulls_largest):
            ordered = nulls + values
        else:
            ordered = values + nulls

    return ordered

def _check_comparable(store: RowStore, indices: Sequence[int], column: str):
    families = set()
    for index in indices:
        families.add(TypeConverter.sort_family(store[index][column]))
        if len(families) > 1:
            raise TypeMismatchError(' or '.join(sorted(families)), 'mixed values', column)
