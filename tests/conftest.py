"""Shared fixtures for sqlwindow tests."""

import pytest

from sqlwindow import RowStore, WindowQueryExecutor


@pytest.fixture
def employees():
    """The four-employee table used throughout the window-function examples."""
    return RowStore(
        [
            {"name": "Alice", "salary": 9000},
            {"name": "Bob", "salary": 8000},
            {"name": "Carol", "salary": 8000},
            {"name": "Dave", "salary": 7000},
        ]
    )


@pytest.fixture
def departments():
    """Rows interleaved across two departments so partitioning has to regroup them."""
    return RowStore(
        [
            {"name": "Alice", "dept": "HR", "salary": 9000},
            {"name": "Carol", "dept": "IT", "salary": 9500},
            {"name": "Bob", "dept": "HR", "salary": 8000},
            {"name": "Dave", "dept": "IT", "salary": 8800},
        ]
    )


@pytest.fixture
def sales():
    """Monthly sales with a null month and a tie, for frame and null-placement tests."""
    return RowStore(
        [
            {"month": 1, "region": "east", "amount": 100},
            {"month": 2, "region": "east", "amount": 150},
            {"month": 3, "region": "east", "amount": None},
            {"month": 4, "region": "east", "amount": 50},
            {"month": 1, "region": "west", "amount": 200},
            {"month": 2, "region": "west", "amount": 200},
        ]
    )


@pytest.fixture
def executor():
    return WindowQueryExecutor()
