"""End-to-end queries through WindowQueryExecutor and the result assembler."""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

import sqlwindow
from sqlwindow import (
    RowStore,
    WindowCall,
    WindowSpec,
    WindowQueryExecutor,
    ColumnAlreadyExistsError,
    InternalError,
    MissingOrderByError,
    TypeMismatchError,
)
from sqlwindow.query import assemble, partition


class TestScenarios:
    """The worked examples from the window-function cheat sheet."""

    def test_ranking_functions(self, executor, employees):
        rows = executor.execute(
            employees,
            "ROW_NUMBER() OVER (ORDER BY salary DESC) AS rn, "
            "RANK() OVER (ORDER BY salary DESC) AS rnk, "
            "DENSE_RANK() OVER (ORDER BY salary DESC) AS dense",
        )
        assert [row["rn"] for row in rows] == [1, 2, 3, 4]
        assert [row["rnk"] for row in rows] == [1, 2, 2, 4]
        assert [row["dense"] for row in rows] == [1, 2, 2, 3]

    def test_lead_and_lag(self, executor, employees):
        rows = executor.execute(
            employees,
            [
                "LEAD(salary) OVER (ORDER BY salary DESC) AS next_salary",
                "LAG(salary) OVER (ORDER BY salary DESC) AS prev_salary",
            ],
        )
        assert [row["next_salary"] for row in rows] == [8000, 8000, 7000, None]
        assert [row["prev_salary"] for row in rows] == [None, 9000, 8000, 8000]

    def test_rank_partitioned_by_department(self, executor, departments):
        rows = executor.execute(
            departments, "RANK() OVER (PARTITION BY dept ORDER BY salary DESC) AS dept_rank"
        )
        by_dept = {}
        for row in rows:
            by_dept.setdefault(row["dept"], []).append((row["salary"], row["dept_rank"]))
        assert by_dept["HR"] == [(9000, 1), (8000, 2)]
        assert by_dept["IT"] == [(9500, 1), (8800, 2)]

    def test_rank_without_order_by(self, executor, employees):
        with pytest.raises(MissingOrderByError):
            executor.execute(employees, "RANK() OVER ()")

    def test_running_total(self, executor, sales):
        rows = executor.execute(
            sales,
            "SUM(amount) OVER (PARTITION BY region ORDER BY month "
            "ROWS BETWEEN UNBOUNDED PRECEDING AND CURRENT ROW) AS running",
        )
        assert [row["running"] for row in rows] == [100, 250, 250, 300, 200, 400]


class TestExecute:
    """Input handling and output shape."""

    def test_accepts_plain_rows(self, executor):
        rows = executor.execute([{"v": 3}, {"v": 1}], WindowCall("ROW_NUMBER", (), WindowSpec(order_by=["v"])))
        assert rows == [{"v": 3, "row_number": 2}, {"v": 1, "row_number": 1}]

    def test_output_preserves_original_order_and_columns(self, executor, departments):
        rows = executor.execute(departments, "COUNT(*) OVER (PARTITION BY dept) AS n")
        assert [row["name"] for row in rows] == ["Alice", "Carol", "Bob", "Dave"]
        assert list(rows[0]) == ["name", "dept", "salary", "n"]

    def test_input_rows_untouched(self, executor, employees):
        executor.execute(employees, "RANK() OVER (ORDER BY salary) AS r")
        assert "r" not in employees[0]

    def test_empty_input(self, executor):
        assert executor.execute([], "RANK() OVER (ORDER BY x) AS r") == []

    def test_duplicate_alias(self, executor, employees):
        with pytest.raises(ColumnAlreadyExistsError):
            executor.execute(employees, "RANK() OVER (ORDER BY salary) AS r, ROW_NUMBER() OVER (ORDER BY salary) AS r")

    def test_alias_collides_with_input_column(self, executor, employees):
        with pytest.raises(ColumnAlreadyExistsError):
            executor.execute(employees, "RANK() OVER (ORDER BY salary) AS name")

    def test_nulls_largest_option(self):
        store = RowStore([{"v": None}, {"v": 1}])
        default = WindowQueryExecutor().execute(store, "ROW_NUMBER() OVER (ORDER BY v) AS rn")
        flipped = WindowQueryExecutor(nulls_largest=False).execute(store, "ROW_NUMBER() OVER (ORDER BY v) AS rn")
        assert [row["rn"] for row in default] == [2, 1]
        assert [row["rn"] for row in flipped] == [1, 2]

    def test_module_level_evaluate(self, employees):
        rows = sqlwindow.evaluate(
            employees, "DENSE_RANK() OVER (ORDER BY salary DESC) AS d", max_workers=2
        )
        assert [row["d"] for row in rows] == [1, 2, 2, 3]

    def test_logs_at_debug(self, executor, employees, caplog):
        with caplog.at_level(logging.DEBUG, logger="sqlwindow.query.executor"):
            executor.execute(employees, "RANK() OVER (ORDER BY salary) AS r")
        assert any("1 partitions" in record.getMessage() for record in caplog.records)


def _many_groups(seed=3, size=400):
    rng = random.Random(seed)
    return RowStore(
        {"grp": rng.randint(0, 25), "v": rng.choice([None, 1, 2, 3, 4]), "i": i}
        for i in range(size)
    )


class TestParallelEvaluation:
    """Fan-out across partitions gives the same answer as a sequential run."""

    EXPRESSIONS = (
        "RANK() OVER (PARTITION BY grp ORDER BY v DESC) AS rnk, "
        "LAG(i, 2, -1) OVER (PARTITION BY grp ORDER BY i) AS prev, "
        "AVG(v) OVER (PARTITION BY grp ORDER BY i ROWS BETWEEN 2 PRECEDING AND CURRENT ROW) AS avg3"
    )

    def test_matches_sequential(self):
        store = _many_groups()
        sequential = WindowQueryExecutor().execute(store, self.EXPRESSIONS)
        parallel = WindowQueryExecutor(max_workers=8).execute(store, self.EXPRESSIONS)
        assert parallel == sequential

    def test_error_in_one_partition_aborts_query(self):
        store = RowStore([{"g": i % 5, "v": "x" if i == 7 else i} for i in range(20)])
        with pytest.raises(TypeMismatchError):
            WindowQueryExecutor(max_workers=4).execute(store, "SUM(v) OVER (PARTITION BY g) AS s")

    def test_parallel_timeout(self, monkeypatch):
        executor = WindowQueryExecutor(max_workers=2, timeout=0.05)
        original = executor.functions.evaluate

        def slow(store, ordered, call):
            time.sleep(0.5)
            return original(store, ordered, call)

        monkeypatch.setattr(executor.functions, "evaluate", slow)
        with pytest.raises(TimeoutError):
            executor.execute(_many_groups(size=20), "ROW_NUMBER() OVER (PARTITION BY grp ORDER BY i) AS rn")

    def test_sequential_timeout(self, monkeypatch):
        executor = WindowQueryExecutor(timeout=0.01)
        original = executor.functions.evaluate

        def slow(store, ordered, call):
            time.sleep(0.05)
            return original(store, ordered, call)

        monkeypatch.setattr(executor.functions, "evaluate", slow)
        with pytest.raises(TimeoutError):
            executor.execute(_many_groups(size=20), "ROW_NUMBER() OVER (PARTITION BY grp ORDER BY i) AS rn")

    def test_shared_executor_across_threads(self, employees):
        executor = WindowQueryExecutor()
        expressions = (
            "RANK() OVER (PARTITION BY name ORDER BY salary DESC) AS r, "
            "LAG(salary, 1, 0) OVER (ORDER BY salary DESC) AS prev, "
            "SUM(salary) OVER (ORDER BY salary DESC ROWS BETWEEN 1 PRECEDING AND CURRENT ROW) AS pair"
        )
        expected = executor.execute(employees, expressions)

        def run(_):
            return [executor.execute(employees, expressions) for _ in range(100)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            for results in pool.map(run, range(8)):
                assert all(result == expected for result in results)


class TestAssembler:
    """Merging computed columns back into original row order."""

    def test_round_trip_with_identity(self, departments):
        groups = partition(departments, departments.indices(), ("dept",))
        identity = {}
        for indices in reversed(list(groups.values())):
            identity.update({i: i for i in indices})

        rows = assemble(departments, {"pos": identity})
        assert [row["pos"] for row in rows] == departments.indices()
        assert [{k: v for k, v in row.items() if k != "pos"} for row in rows] == [
            dict(row) for row in departments
        ]

    def test_no_computed_columns(self, employees):
        assert assemble(employees, {}) == [dict(row) for row in employees]

    def test_missing_row_is_internal_error(self, employees):
        with pytest.raises(InternalError):
            assemble(employees, {"x": {0: 1, 1: 1, 2: 1}})

    def test_unknown_row_is_internal_error(self, employees):
        with pytest.raises(InternalError):
            assemble(employees, {"x": {0: 1, 1: 1, 2: 1, 9: 1}})
