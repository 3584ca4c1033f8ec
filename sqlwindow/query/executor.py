import logging
import time
from concurrent.futures import ThreadPoolExecutor, FIRST_EXCEPTION, wait
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .assembler import assemble
from .orderer import order
from .parser import WindowExpressionParser
from .partitioner import partition
from ..advanced.window_functions import WindowFunctionExecutor, ComputedColumn
from ..schema.window import WindowCall
from ..storage.row_store import RowStore
from ..utils.exceptions import ColumnAlreadyExistsError

logger = logging.getLogger(__name__)

CallLike = Union[WindowCall, str]

class WindowQueryExecutor:
    """Runs window calls over a RowStore: partition, order, evaluate, assemble.

    Partitions are independent once grouped, so with ``max_workers > 1`` each
    one is ordered and evaluated on a thread pool and the results are joined
    before assembly. ``timeout`` bounds the whole query in seconds.
    """

    def __init__(self, max_workers: int = 1, timeout: Optional[float] = None,
                 nulls_largest: bool = True):
        self.max_workers = max_workers
        self.timeout = timeout
        self.nulls_largest = nulls_largest
        self.functions = WindowFunctionExecutor()

    def execute(self, rows: Union[RowStore, Iterable[Mapping[str, Any]]],
                calls: Union[CallLike, Sequence[CallLike]]) -> List[Dict[str, Any]]:
        store = rows if isinstance(rows, RowStore) else RowStore(rows)
        calls = self._resolve_calls(calls)

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        computed: Dict[str, ComputedColumn] = {}
        for call in calls:
            if call.alias in computed:
                raise ColumnAlreadyExistsError(call.alias)
            computed[call.alias] = self._evaluate(store, call, deadline)

        return assemble(store, computed)

    def evaluate(self, store: RowStore, call: CallLike) -> ComputedColumn:
        """Compute one window call; returns row index -> value for every row."""
        call = self._resolve_calls(call)[0]
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        return self._evaluate(store, call, deadline)

    def _resolve_calls(self, calls: Union[CallLike, Sequence[CallLike]]) -> List[WindowCall]:
        if isinstance(calls, WindowCall):
            return [calls]
        if isinstance(calls, str):
            calls = [calls]

        # The parser keeps token state, so each resolution gets its own
        parser = WindowExpressionParser()
        resolved = []
        for call in calls:
            if isinstance(call, str):
                resolved.extend(parser.parse_list(call))
            else:
                resolved.append(call)
        return resolved

    def _evaluate(self, store: RowStore, call: WindowCall, deadline: Optional[float]) -> ComputedColumn:
        # Fail before any work is done
        self.functions.validate(call)
        store.require_columns(self.functions.referenced_columns(call))

        partitions = list(partition(store, store.indices(), call.window.partition_by).values())
        workers = min(self.max_workers, len(partitions))
        logger.debug(f"Evaluating {call!r} over {len(store)} rows in "
                     f"{len(partitions)} partitions with {max(workers, 1)} workers")

        computed: ComputedColumn = {}
        if workers <= 1:
            for indices in partitions:
                self._check_deadline(deadline)
                computed.update(self._evaluate_partition(store, indices, call))
        else:
            for result in self._evaluate_parallel(store, partitions, call, workers, deadline):
                computed.update(result)

        logger.debug(f"Finished {call.function} as '{call.alias}'")
        return computed

    def _evaluate_partition(self, store: RowStore, indices: List[int], call: WindowCall) -> ComputedColumn:
        ordered = order(store, indices, call.window.order_by, self.nulls_largest)
        return self.functions.evaluate(store, ordered, call)

    def _evaluate_parallel(self, store: RowStore, partitions: List[List[int]], call: WindowCall,
                           workers: int, deadline: Optional[float]) -> List[ComputedColumn]:
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix='sqlwindow')
        try:
            futures = [pool.submit(self._evaluate_partition, store, indices, call)
                       for indices in partitions]
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
            done, pending = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)

            for future in done:
                error = future.exception()
                if error is not None:
                    logger.error(f"Partition evaluation failed for {call.function}: {error}")
                    raise error
            if pending:
                raise TimeoutError(f"Window query exceeded {self.timeout} seconds")

            # Keep partition order so the merge is deterministic
            return [future.result() for future in futures]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _check_deadline(self, deadline: Optional[float]):
        if deadline is not None and time.monotonic() > deadline:
            raise TimeoutError(f"Window query exceeded {self.timeout} seconds")
