from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from ..schema.types import TypeConverter
from ..utils.exceptions import ColumnNotFoundError, TypeMismatchError

Row = Mapping[str, Any]

class RowStore:
    """Immutable, positionally indexed rows loaded once from the caller's input."""

    def __init__(self, rows: Iterable[Mapping[str, Any]]):
        self._rows: List[Row] = []
        self._columns: Dict[str, None] = {}

        for row in rows:
            self._rows.append(MappingProxyType(self._load_row(row)))

    def _load_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        loaded = {}
        for column, value in row.items():
            try:
                loaded[column] = TypeConverter.normalize(value)
            except TypeMismatchError as e:
                raise TypeMismatchError(e.expected_type, e.actual_type, column) from None
            self._columns.setdefault(column, None)
        return loaded

    @classmethod
    def from_records(cls, records: Iterable[Sequence[Any]], columns: Sequence[str]) -> 'RowStore':
        columns = list(columns)
        return cls(dict(zip(columns, record)) for record in records)

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def indices(self) -> List[int]:
        return list(range(len(self._rows)))

    def value(self, index: int, column: str) -> Any:
        row = self._rows[index]
        if column not in row:
            raise ColumnNotFoundError(column, index)
        return row[column]

    def require_columns(self, columns: Iterable[str], indices: Optional[Iterable[int]] = None):
        columns = list(dict.fromkeys(columns))
        if not columns:
            return
        for index in (self.indices() if indices is None else indices):
            row = self._rows[index]
            for column in columns:
                if column not in row:
                    raise ColumnNotFoundError(column, index)

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __repr__(self):
        return f"RowStore(rows={len(self._rows)}, columns={self.columns!r})"
