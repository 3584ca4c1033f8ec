from typing import Any, Dict, List, Mapping

from ..storage.row_store import RowStore
from ..utils.exceptions import ColumnAlreadyExistsError, InternalError

def assemble(store: RowStore, computed: Mapping[str, Mapping[int, Any]]) -> List[Dict[str, Any]]:
    """Emit every stored row in original order with the computed columns appended.

    `computed` maps output alias to a computed column (row index -> value);
    aliases are appended in mapping order.
    """
    existing = set(store.columns)
    for alias, column in computed.items():
        if alias in existing:
            raise ColumnAlreadyExistsError(alias)
        existing.add(alias)
        missing = next((i for i in store.indices() if i not in column), None)
        if missing is not None or len(column) != len(store):
            raise InternalError(f"Computed column '{alias}' has {len(column)} values "
                                f"for {len(store)} rows (first missing row: {missing})")

    result = []
    for index, row in enumerate(store):
        out = dict(row)
        for alias, column in computed.items():
            out[alias] = column[index]
        result.append(out)
    return result
