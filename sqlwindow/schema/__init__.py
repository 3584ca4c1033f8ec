from .types import DataType, TypeConverter
from .window import OrderItem, OrderSpec, FrameBound, FrameSpec, WindowSpec, WindowCall

__all__ = ['DataType', 'TypeConverter', 'OrderItem', 'OrderSpec', 'FrameBound',
           'FrameSpec', 'WindowSpec', 'WindowCall']
