from enum import Enum
from typing import Any

from ..utils.exceptions import TypeMismatchError

class DataType(Enum):
    NULL = 0
    INTEGER = 1
    REAL = 2
    TEXT = 3

NUMERIC_TYPES = (DataType.INTEGER, DataType.REAL)

class TypeConverter:
    @staticmethod
    def infer_type(value: Any) -> DataType:
        if value is None:
            return DataType.NULL
        elif isinstance(value, (bool, int)):
            return DataType.INTEGER
        elif isinstance(value, float):
            return DataType.REAL
        elif isinstance(value, str):
            return DataType.TEXT
        raise TypeMismatchError('INTEGER, REAL, TEXT or NULL', type(value).__name__)

    @staticmethod
    def normalize(value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        TypeConverter.infer_type(value)
        return value

    @staticmethod
    def is_numeric(value: Any) -> bool:
        return TypeConverter.infer_type(value) in NUMERIC_TYPES

    @staticmethod
    def sort_family(value: Any) -> str:
        """Values of the same family compare with each other; INTEGER and REAL share one."""
        data_type = TypeConverter.infer_type(value)
        if data_type in NUMERIC_TYPES:
            return 'NUMERIC'
        return data_type.name
