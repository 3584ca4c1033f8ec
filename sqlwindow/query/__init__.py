"""
Query Module
"""

from .partitioner import partition
from .orderer import order, order_key
from .assembler import assemble
from .parser import WindowExpressionParser, Token
from .executor import WindowQueryExecutor

__all__ = ['partition', 'order', 'order_key', 'assemble', 'WindowExpressionParser',
           'Token', 'WindowQueryExecutor']
