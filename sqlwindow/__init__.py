from .storage.row_store import RowStore
from .schema.types import DataType, TypeConverter
from .schema.window import (
    OrderItem,
    OrderSpec,
    FrameBound,
    FrameSpec,
    WindowSpec,
    WindowCall
)
from .query.executor import WindowQueryExecutor
from .query.parser import WindowExpressionParser
from .advanced.window_functions import WindowFunctionExecutor
from .utils.exceptions import (
    SQLWindowError,
    Error,
    DatabaseError,
    DataError,
    OperationalError,
    InternalError,
    ProgrammingError,
    NotSupportedError,
    SQLSyntaxError,
    UnsupportedFeatureError,
    ColumnNotFoundError,
    ColumnAlreadyExistsError,
    MissingOrderByError,
    InvalidArgumentError,
    InvalidOffsetError,
    TypeMismatchError
)

__version__ = "0.1.0"
__all__ = [
    "evaluate",
    "RowStore",
    "DataType",
    "TypeConverter",
    "OrderItem",
    "OrderSpec",
    "FrameBound",
    "FrameSpec",
    "WindowSpec",
    "WindowCall",
    "WindowQueryExecutor",
    "WindowExpressionParser",
    "WindowFunctionExecutor",
    "SQLWindowError",
    "Error",
    "DatabaseError",
    "DataError",
    "OperationalError",
    "InternalError",
    "ProgrammingError",
    "NotSupportedError",
    "SQLSyntaxError",
    "UnsupportedFeatureError",
    "ColumnNotFoundError",
    "ColumnAlreadyExistsError",
    "MissingOrderByError",
    "InvalidArgumentError",
    "InvalidOffsetError",
    "TypeMismatchError",
]

def evaluate(rows, *expressions, **options):
    """Evaluate window expressions over rows and return the augmented rows.

    Example::

        evaluate(rows, "RANK() OVER (PARTITION BY dept ORDER BY salary DESC) AS rnk",
                 max_workers=4)
    """
    executor = WindowQueryExecutor(**options)
    return executor.execute(rows, list(expressions))
