from .window_functions import WindowFunctionExecutor, PartitionView

__all__ = ['WindowFunctionExecutor', 'PartitionView']
