from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..query.orderer import order_key
from ..schema.types import TypeConverter
from ..schema.window import (
    WindowCall, FrameBound, RANGE,
    UNBOUNDED_PRECEDING, PRECEDING, FOLLOWING, UNBOUNDED_FOLLOWING
)
from ..storage.row_store import RowStore
from ..utils.exceptions import (
    MissingOrderByError, InvalidOffsetError, InvalidArgumentError,
    TypeMismatchError, UnsupportedFeatureError
)

ComputedColumn = Dict[int, Any]

ORDERED_FUNCTIONS = {'ROW_NUMBER', 'RANK', 'DENSE_RANK', 'NTILE', 'PERCENT_RANK', 'CUME_DIST'}
AGGREGATE_FUNCTIONS = {'SUM', 'AVG', 'COUNT', 'MIN', 'MAX'}
NUMERIC_AGGREGATES = {'SUM', 'AVG'}

# name -> (min args, max args, first argument is a column)
SIGNATURES = {
    'ROW_NUMBER': (0, 0, False),
    'RANK': (0, 0, False),
    'DENSE_RANK': (0, 0, False),
    'PERCENT_RANK': (0, 0, False),
    'CUME_DIST': (0, 0, False),
    'NTILE': (1, 1, False),
    'LEAD': (1, 3, True),
    'LAG': (1, 3, True),
    'FIRST_VALUE': (1, 1, True),
    'LAST_VALUE': (1, 1, True),
    'NTH_VALUE': (2, 2, True),
    'SUM': (1, 1, True),
    'AVG': (1, 1, True),
    'COUNT': (1, 1, True),
    'MIN': (1, 1, True),
    'MAX': (1, 1, True),
}

_UNSET = object()

def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0

class PartitionView:
    """An ordered partition with its order-key tuples and peer-group bounds."""

    def __init__(self, store: RowStore, indices: Sequence[int], call: WindowCall):
        self.store = store
        self.indices = list(indices)
        self.keys = [order_key(store, i, call.window.order_by) for i in self.indices]
        self.peer_start: List[int] = []
        self.peer_end: List[int] = [0] * len(self.indices)

        start = 0
        for position, key in enumerate(self.keys):
            if position > 0 and key != self.keys[position - 1]:
                start = position
            self.peer_start.append(start)
        end = len(self.indices) - 1
        for position in range(len(self.indices) - 1, -1, -1):
            if position < end and self.keys[position] != self.keys[position + 1]:
                end = position
            self.peer_end[position] = end

    def __len__(self) -> int:
        return len(self.indices)

    def values(self, column: str) -> List[Any]:
        return [self.store[i][column] for i in self.indices]

class WindowFunctionExecutor:

    def __init__(self):
        self.functions = {
            'ROW_NUMBER': self._row_number,
            'RANK': self._rank,
            'DENSE_RANK': self._dense_rank,
            'PERCENT_RANK': self._percent_rank,
            'CUME_DIST': self._cume_dist,
            'NTILE': self._ntile,
            'LAG': self._lag,
            'LEAD': self._lead,
            'FIRST_VALUE': self._first_value,
            'LAST_VALUE': self._last_value,
            'NTH_VALUE': self._nth_value,
        }
        for name in AGGREGATE_FUNCTIONS:
            self.functions[name] = self._aggregate

    def validate(self, call: WindowCall):
        """Check everything about a call that does not depend on the data."""
        name = call.function
        if name not in SIGNATURES:
            raise UnsupportedFeatureError(f"window function {name}")

        min_args, max_args, _ = SIGNATURES[name]
        if not min_args <= len(call.args) <= max_args:
            expected = str(min_args) if min_args == max_args else f"{min_args} to {max_args}"
            raise InvalidArgumentError(name, f"expected {expected} arguments, got {len(call.args)}")

        if name in ORDERED_FUNCTIONS and not call.window.order_by:
            raise MissingOrderByError(name)

        if name in ('LEAD', 'LAG') and len(call.args) > 1:
            if not _is_positive_int(call.args[1]):
                raise InvalidOffsetError(name, call.args[1])
        elif name == 'NTILE' and not _is_positive_int(call.args[0]):
            raise InvalidArgumentError(name, f"bucket count must be a positive integer, got {call.args[0]!r}")
        elif name == 'NTH_VALUE' and not _is_positive_int(call.args[1]):
            raise InvalidArgumentError(name, f"position must be a positive integer, got {call.args[1]!r}")

        if SIGNATURES[name][2]:
            if not isinstance(call.args[0], str):
                raise InvalidArgumentError(name, f"expected a column name, got {call.args[0]!r}")
            if call.args[0] == '*' and name != 'COUNT':
                raise InvalidArgumentError(name, "'*' is only allowed in COUNT")

    def referenced_columns(self, call: WindowCall) -> List[str]:
        columns = call.window.referenced_columns
        if SIGNATURES.get(call.function, (0, 0, False))[2] and call.args and call.args[0] != '*':
            columns.append(call.args[0])
        return columns

    def evaluate(self, store: RowStore, partition: Sequence[int], call: WindowCall) -> ComputedColumn:
        """Compute one value per row of an already ordered partition."""
        func = self.functions.get(call.function)
        if func is None:
            raise UnsupportedFeatureError(f"window function {call.function}")

        view = PartitionView(store, partition, call)
        results = func(view, call)
        return dict(zip(view.indices, results))

    # Ranking

    def _row_number(self, view: PartitionView, call: WindowCall) -> List[int]:
        return list(range(1, len(view) + 1))

    def _rank(self, view: PartitionView, call: WindowCall) -> List[int]:
        ranks = []
        current_rank = 1
        last_key = _UNSET

        for position, key in enumerate(view.keys):
            if key != last_key:
                current_rank = position + 1
            ranks.append(current_rank)
            last_key = key

        return ranks

    def _dense_rank(self, view: PartitionView, call: WindowCall) -> List[int]:
        ranks = []
        current_rank = 0
        last_key = _UNSET

        for key in view.keys:
            if key != last_key:
                current_rank += 1
            ranks.append(current_rank)
            last_key = key

        return ranks

    def _percent_rank(self, view: PartitionView, call: WindowCall) -> List[float]:
        n = len(view)
        if n == 1:
            return [0.0]
        return [(rank - 1) / (n - 1) for rank in self._rank(view, call)]

    def _cume_dist(self, view: PartitionView, call: WindowCall) -> List[float]:
        n = len(view)
        return [(view.peer_end[position] + 1) / n for position in range(n)]

    def _ntile(self, view: PartitionView, call: WindowCall) -> List[int]:
        n = len(view)
        buckets = min(call.args[0], n)
        if buckets == 0:
            return []
        bucket_size, remainder = divmod(n, buckets)
        # The first `remainder` buckets take one extra row
        boundary = remainder * (bucket_size + 1)

        results = []
        for position in range(n):
            if position < boundary:
                results.append(position // (bucket_size + 1) + 1)
            else:
                results.append(remainder + (position - boundary) // bucket_size + 1)
        return results

    # Offsets

    def _offset_args(self, call: WindowCall) -> Tuple[str, int, Any]:
        column = call.args[0]
        offset = call.args[1] if len(call.args) > 1 else 1
        default = call.args[2] if len(call.args) > 2 else None
        return column, offset, default

    def _lag(self, view: PartitionView, call: WindowCall) -> List[Any]:
        column, offset, default = self._offset_args(call)
        values = view.values(column)

        results = []
        for position in range(len(values)):
            if position - offset >= 0:
                results.append(values[position - offset])
            else:
                results.append(default)
        return results

    def _lead(self, view: PartitionView, call: WindowCall) -> List[Any]:
        column, offset, default = self._offset_args(call)
        values = view.values(column)

        results = []
        for position in range(len(values)):
            if position + offset < len(values):
                results.append(values[position + offset])
            else:
                results.append(default)
        return results

    # Frames

    def frame_bounds(self, view: PartitionView, call: WindowCall) -> Optional[List[Tuple[int, int]]]:
        """Inclusive (start, end) positions per row, or None for the whole partition.

        A frame with start > end is empty.
        """
        frame = call.window.frame
        if frame is None:
            return None

        n = len(view)
        bounds = []
        for position in range(n):
            start = self._resolve_bound(frame.start, position, view, frame.mode == RANGE, True)
            end = self._resolve_bound(frame.end, position, view, frame.mode == RANGE, False)
            bounds.append((max(start, 0), min(end, n - 1)))
        return bounds

    def _resolve_bound(self, bound: FrameBound, position: int, view: PartitionView,
                       peers: bool, is_start: bool) -> int:
        kind = bound.kind
        if kind == UNBOUNDED_PRECEDING:
            return 0
        if kind == UNBOUNDED_FOLLOWING:
            return len(view) - 1
        if kind == PRECEDING:
            return position - bound.offset
        if kind == FOLLOWING:
            return position + bound.offset
        # CURRENT ROW: in RANGE mode the current row includes its peers
        if peers:
            return view.peer_start[position] if is_start else view.peer_end[position]
        return position

    def _framed(self, view: PartitionView, call: WindowCall, compute) -> List[Any]:
        bounds = self.frame_bounds(view, call)
        values = view.values(call.args[0]) if call.args[0] != '*' else [1] * len(view)
        if bounds is None:
            return [compute(values)] * len(view)
        return [compute(values[start:end + 1] if start <= end else []) for start, end in bounds]

    def _first_value(self, view: PartitionView, call: WindowCall) -> List[Any]:
        return self._framed(view, call, lambda frame: frame[0] if frame else None)

    def _last_value(self, view: PartitionView, call: WindowCall) -> List[Any]:
        return self._framed(view, call, lambda frame: frame[-1] if frame else None)

    def _nth_value(self, view: PartitionView, call: WindowCall) -> List[Any]:
        nth = call.args[1]
        return self._framed(view, call, lambda frame: frame[nth - 1] if len(frame) >= nth else None)

    # Aggregates

    def _aggregate(self, view: PartitionView, call: WindowCall) -> List[Any]:
        func = call.function
        column = call.args[0]
        if func != 'COUNT':
            self._check_aggregate_types(func, column, view.values(column))

        def compute(frame):
            if func == 'COUNT':
                return sum(1 for value in frame if value is not None)
            values = [value for value in frame if value is not None]
            if not values:
                return None
            if func == 'SUM':
                return sum(values)
            elif func == 'AVG':
                return sum(values) / len(values)
            elif func == 'MIN':
                return min(values)
            return max(values)

        return self._framed(view, call, compute)

    def _check_aggregate_types(self, func: str, column: str, values: List[Any]):
        families = set()
        for value in values:
            if value is None:
                continue
            if func in NUMERIC_AGGREGATES and not TypeConverter.is_numeric(value):
                raise TypeMismatchError('INTEGER or REAL', TypeConverter.infer_type(value).name, column)
            families.add(TypeConverter.sort_family(value))
        # MIN/MAX compare values, so one column must hold a single family
        if len(families) > 1:
            raise TypeMismatchError(' or '.join(sorted(families)), 'mixed values', column)
