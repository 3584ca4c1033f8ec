from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

from ..utils.exceptions import ProgrammingError, UnsupportedFeatureError

ASC = 'ASC'
DESC = 'DESC'

ROWS = 'ROWS'
RANGE = 'RANGE'

UNBOUNDED_PRECEDING = 'UNBOUNDED PRECEDING'
PRECEDING = 'PRECEDING'
CURRENT_ROW = 'CURRENT ROW'
FOLLOWING = 'FOLLOWING'
UNBOUNDED_FOLLOWING = 'UNBOUNDED FOLLOWING'

class OrderItem:
    def __init__(self, column: str, direction: str = ASC, nulls_first: Optional[bool] = None):
        direction = direction.upper()
        if direction not in (ASC, DESC):
            raise ProgrammingError(f"Invalid sort direction '{direction}', expected ASC or DESC")
        self.column = column
        self.direction = direction
        self.nulls_first = nulls_first

    @property
    def descending(self) -> bool:
        return self.direction == DESC

    def resolve_nulls_first(self, nulls_largest: bool = True) -> bool:
        if self.nulls_first is not None:
            return self.nulls_first
        # Largest nulls land last ascending and first descending
        return self.descending if nulls_largest else not self.descending

    def to_dict(self) -> dict:
        return {
            'column': self.column,
            'direction': self.direction,
            'nulls_first': self.nulls_first
        }

    def __eq__(self, other):
        if not isinstance(other, OrderItem):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        text = f"{self.column} {self.direction}"
        if self.nulls_first is not None:
            text += " NULLS FIRST" if self.nulls_first else " NULLS LAST"
        return f"OrderItem({text})"

OrderLike = Union[OrderItem, str, Tuple[str, str]]

class OrderSpec:
    """Ordered sequence of OrderItem; accepts items, bare column names or (column, direction) pairs."""

    def __init__(self, items: Sequence[OrderLike] = ()):
        self.items: List[OrderItem] = [self._coerce(item) for item in items]

    @staticmethod
    def _coerce(item: OrderLike) -> OrderItem:
        if isinstance(item, OrderItem):
            return item
        if isinstance(item, str):
            return OrderItem(item)
        if isinstance(item, (tuple, list)) and len(item) in (2, 3):
            return OrderItem(*item)
        raise ProgrammingError(f"Cannot interpret {item!r} as an ORDER BY item")

    @property
    def columns(self) -> List[str]:
        return [item.column for item in self.items]

    def __iter__(self) -> Iterator[OrderItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __eq__(self, other):
        if not isinstance(other, OrderSpec):
            return NotImplemented
        return self.items == other.items

    def __repr__(self):
        return f"OrderSpec({self.items!r})"

class FrameBound:
    KINDS = (UNBOUNDED_PRECEDING, PRECEDING, CURRENT_ROW, FOLLOWING, UNBOUNDED_FOLLOWING)

    def __init__(self, kind: str, offset: Optional[int] = None):
        if kind not in self.KINDS:
            raise ProgrammingError(f"Invalid frame bound '{kind}'")
        if kind in (PRECEDING, FOLLOWING):
            if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
                raise ProgrammingError(f"Frame offset must be a non-negative integer, got {offset!r}")
        else:
            offset = None
        self.kind = kind
        self.offset = offset

    @classmethod
    def unbounded_preceding(cls) -> 'FrameBound':
        return cls(UNBOUNDED_PRECEDING)

    @classmethod
    def preceding(cls, offset: int) -> 'FrameBound':
        return cls(PRECEDING, offset)

    @classmethod
    def current_row(cls) -> 'FrameBound':
        return cls(CURRENT_ROW)

    @classmethod
    def following(cls, offset: int) -> 'FrameBound':
        return cls(FOLLOWING, offset)

    @classmethod
    def unbounded_following(cls) -> 'FrameBound':
        return cls(UNBOUNDED_FOLLOWING)

    def __eq__(self, other):
        if not isinstance(other, FrameBound):
            return NotImplemented
        return (self.kind, self.offset) == (other.kind, other.offset)

    def __repr__(self):
        if self.offset is not None:
            return f"{self.offset} {self.kind}"
        return self.kind

class FrameSpec:
    def __init__(self, start: FrameBound, end: Optional[FrameBound] = None, mode: str = ROWS):
        mode = mode.upper()
        if mode not in (ROWS, RANGE):
            raise UnsupportedFeatureError(f"{mode} frames")
        end = end or FrameBound.current_row()
        if start.kind == UNBOUNDED_FOLLOWING:
            raise ProgrammingError("Frame start cannot be UNBOUNDED FOLLOWING")
        if end.kind == UNBOUNDED_PRECEDING:
            raise ProgrammingError("Frame end cannot be UNBOUNDED PRECEDING")
        # KINDS runs from earliest to latest; an end of an earlier kind than the start is rejected
        if FrameBound.KINDS.index(end.kind) < FrameBound.KINDS.index(start.kind):
            raise ProgrammingError(f"Frame starting from {start!r} cannot end with {end!r}")
        if mode == RANGE and (start.offset is not None or end.offset is not None):
            raise UnsupportedFeatureError("RANGE frames with numeric offsets",
                                          hint="use ROWS or UNBOUNDED/CURRENT ROW bounds")
        self.mode = mode
        self.start = start
        self.end = end

    @classmethod
    def running(cls) -> 'FrameSpec':
        return cls(FrameBound.unbounded_preceding(), FrameBound.current_row())

    def __eq__(self, other):
        if not isinstance(other, FrameSpec):
            return NotImplemented
        return (self.mode, self.start, self.end) == (other.mode, other.start, other.end)

    def __repr__(self):
        return f"FrameSpec({self.mode} BETWEEN {self.start!r} AND {self.end!r})"

class WindowSpec:
    def __init__(self, partition_by: Sequence[str] = (),
                 order_by: Union[OrderSpec, Sequence[OrderLike]] = (),
                 frame: Optional[FrameSpec] = None):
        if isinstance(partition_by, str):
            partition_by = (partition_by,)
        self.partition_by: Tuple[str, ...] = tuple(partition_by)
        self.order_by = order_by if isinstance(order_by, OrderSpec) else OrderSpec(order_by)
        # None means the whole partition, with or without ORDER BY
        self.frame = frame

    @property
    def referenced_columns(self) -> List[str]:
        return list(self.partition_by) + self.order_by.columns

    def __eq__(self, other):
        if not isinstance(other, WindowSpec):
            return NotImplemented
        return (self.partition_by, self.order_by, self.frame) == (other.partition_by, other.order_by, other.frame)

    def __repr__(self):
        return (f"WindowSpec(partition_by={list(self.partition_by)!r}, "
                f"order_by={self.order_by.items!r}, frame={self.frame!r})")

class WindowCall:
    """One requested computed column: function(args) OVER (window) AS alias."""

    def __init__(self, function: str, args: Sequence[Any] = (),
                 window: Optional[WindowSpec] = None, alias: Optional[str] = None):
        self.function = function.upper()
        self.args = list(args)
        self.window = window or WindowSpec()
        self.alias = alias or self.function.lower()

    def __eq__(self, other):
        if not isinstance(other, WindowCall):
            return NotImplemented
        return ((self.function, self.args, self.window, self.alias) ==
                (other.function, other.args, other.window, other.alias))

    def __repr__(self):
        args = ', '.join(repr(a) for a in self.args)
        return f"WindowCall({self.function}({args}) OVER {self.window!r} AS {self.alias})"
