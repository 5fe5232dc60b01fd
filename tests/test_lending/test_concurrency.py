"""Tests for concurrent borrows against a shared file-backed database."""

import threading
from datetime import timedelta

from lendtrack.catalog import CatalogManager, ItemCreate
from lendtrack.errors import InsufficientStockError, LendingError
from lendtrack.lending import LendingEngine, ReturnPolicy, retry_on_conflict
from lendtrack.reports import ReportManager
from lendtrack.users import UserCreate, UserRegistry

from conftest import NOW

DUE = NOW + timedelta(days=7)


def _make_users(db, count: int) -> list[int]:
    registry = UserRegistry(db)
    return [
        registry.create_user(
            UserCreate(national_id=f"ID-{i}", name=f"User {i}", phone=f"555-{i:04d}")
        ).id
        for i in range(count)
    ]


def _run_concurrently(callables) -> list:
    """Start callables together and collect each result or exception."""
    barrier = threading.Barrier(len(callables))
    results = [None] * len(callables)

    def worker(index, fn):
        barrier.wait()
        try:
            results[index] = fn()
        except LendingError as e:
            results[index] = e

    threads = [
        threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(callables)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


class TestConcurrentBorrow:
    """Tests that concurrent borrows never oversell stock."""

    def test_two_borrows_for_last_unit(self, file_db):
        """Test exactly one of two borrows of the last unit succeeds."""
        item = CatalogManager(file_db).create_item(ItemCreate(name="oscilloscope", stock=1))
        user_a, user_b = _make_users(file_db, 2)
        engine = LendingEngine(file_db, return_policy=ReturnPolicy.FULL_QUANTITY)

        results = _run_concurrently(
            [
                lambda: engine.borrow(user_a, item.id, 1, DUE),
                lambda: engine.borrow(user_b, item.id, 1, DUE),
            ]
        )

        successes = [r for r in results if isinstance(r, int)]
        failures = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert CatalogManager(file_db).get_item(item.id).stock == 0
        assert len(ReportManager(file_db).list_history()) == 1

    def test_many_borrows_respect_stock(self, file_db):
        """Test eight borrowers competing for three units."""
        item = CatalogManager(file_db).create_item(ItemCreate(name="soldering iron", stock=3))
        users = _make_users(file_db, 8)
        engine = LendingEngine(file_db, return_policy=ReturnPolicy.FULL_QUANTITY)

        def borrow_for(user_id):
            return lambda: retry_on_conflict(
                lambda: engine.borrow(user_id, item.id, 1, DUE),
                retries=5,
                base_delay=0.01,
            )

        results = _run_concurrently([borrow_for(u) for u in users])

        successes = [r for r in results if isinstance(r, int)]
        assert len(successes) == 3
        assert all(
            isinstance(r, InsufficientStockError) for r in results if not isinstance(r, int)
        )
        assert CatalogManager(file_db).get_item(item.id).stock == 0
        assert sum(
            entry.quantity for entry in ReportManager(file_db).list_active_loans()
        ) == 3

    def test_concurrent_returns_close_distinct_loans(self, file_db):
        """Test two returns of the same pair close two different loans."""
        item = CatalogManager(file_db).create_item(ItemCreate(name="multimeter", stock=2))
        (user_id,) = _make_users(file_db, 1)
        engine = LendingEngine(file_db, return_policy=ReturnPolicy.FULL_QUANTITY)
        engine.borrow(user_id, item.id, 1, DUE)
        engine.borrow(user_id, item.id, 1, DUE)

        results = _run_concurrently(
            [
                lambda: engine.return_item(user_id, item.id),
                lambda: engine.return_item(user_id, item.id),
            ]
        )

        closed = {r.loan.id for r in results}
        assert len(closed) == 2
        assert CatalogManager(file_db).get_item(item.id).stock == 2
        assert engine.get_active_quantity(user_id, item.id) == 0
