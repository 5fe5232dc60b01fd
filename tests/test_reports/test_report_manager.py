"""Tests for ReportManager."""

from datetime import date, datetime, timedelta, timezone

from lendtrack.reports import ReportManager

from conftest import NOW


DUE_NEXT_WEEK = NOW + timedelta(days=7)
DUE_YESTERDAY = NOW - timedelta(days=1)


class TestHistory:
    """Tests for the full loan history view."""

    def test_empty(self, reports):
        assert reports.list_history() == []

    def test_history_with_names(self, engine, reports, drill, alice):
        loan_id = engine.borrow(alice.id, drill.id, 2, DUE_NEXT_WEEK)

        [entry] = reports.list_history()
        assert entry.loan_id == loan_id
        assert entry.user_name == "Alice Souza"
        assert entry.item_name == "drill"
        assert entry.quantity == 2
        assert entry.borrowed_at == NOW
        assert entry.due_at == DUE_NEXT_WEEK
        assert entry.returned_at is None

    def test_history_keeps_returned_loans(self, engine, reports, clock, drill, alice, bob):
        first = engine.borrow(alice.id, drill.id, 1, DUE_NEXT_WEEK)
        second = engine.borrow(bob.id, drill.id, 1, DUE_NEXT_WEEK)
        clock.now = NOW + timedelta(hours=2)
        engine.return_item(alice.id, drill.id)

        history = reports.list_history()
        assert [entry.loan_id for entry in history] == [first, second]
        assert history[0].returned_at == NOW + timedelta(hours=2)
        assert history[1].returned_at is None


class TestOverdue:
    """Tests for the overdue view."""

    def test_due_yesterday_is_overdue(self, engine, reports, drill, alice):
        loan_id = engine.borrow(alice.id, drill.id, 1, DUE_YESTERDAY)

        [entry] = reports.list_overdue()
        assert entry.loan_id == loan_id
        assert entry.days_overdue == 1
        assert entry.user_name == "Alice Souza"

    def test_returned_loan_not_overdue(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 1, DUE_YESTERDAY)
        engine.return_item(alice.id, drill.id)

        assert reports.list_overdue() == []

    def test_due_today_not_overdue(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 1, NOW)
        assert reports.list_overdue() == []

    def test_due_date_without_time(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 1, date(2026, 3, 1))

        [entry] = reports.list_overdue()
        assert entry.days_overdue == 9

    def test_as_of_date(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 1, DUE_NEXT_WEEK)

        assert reports.list_overdue(date(2026, 3, 17)) == []
        [entry] = reports.list_overdue(date(2026, 3, 20))
        assert entry.days_overdue == 3

    def test_as_of_datetime(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 1, DUE_YESTERDAY)

        [entry] = reports.list_overdue(datetime(2026, 3, 12, 18, 0, tzinfo=timezone.utc))
        assert entry.days_overdue == 3

        report = reports.get_overdue_report(datetime(2026, 3, 12, 9, 0))
        assert report.as_of == date(2026, 3, 12)
        assert report.oldest_overdue_days == 3

    def test_reflects_clock(self, engine, reports, clock, drill, alice):
        engine.borrow(alice.id, drill.id, 1, DUE_NEXT_WEEK)
        assert reports.list_overdue() == []

        clock.now = NOW + timedelta(days=10)
        [entry] = reports.list_overdue()
        assert entry.days_overdue == 3

    def test_most_overdue_first(self, engine, reports, drill, multimeter, alice, bob):
        engine.borrow(alice.id, drill.id, 1, DUE_YESTERDAY)
        engine.borrow(bob.id, multimeter.id, 1, NOW - timedelta(days=4))

        overdue = reports.list_overdue()
        assert [entry.item_name for entry in overdue] == ["multimeter", "drill"]
        assert [entry.days_overdue for entry in overdue] == [4, 1]

    def test_overdue_report(self, engine, reports, drill, multimeter, alice, bob):
        engine.borrow(alice.id, drill.id, 1, DUE_YESTERDAY)
        engine.borrow(bob.id, multimeter.id, 1, NOW - timedelta(days=4))
        engine.borrow(bob.id, drill.id, 1, DUE_NEXT_WEEK)

        report = reports.get_overdue_report()
        assert report.as_of == date(2026, 3, 10)
        assert report.total_overdue == 2
        assert report.oldest_overdue_days == 4

    def test_empty_overdue_report(self, reports):
        report = reports.get_overdue_report()
        assert report.loans == []
        assert report.total_overdue == 0
        assert report.oldest_overdue_days == 0


class TestUserItems:
    """Tests for the per-user view."""

    def test_user_items(self, engine, reports, drill, multimeter, alice, bob):
        engine.borrow(alice.id, drill.id, 2, DUE_NEXT_WEEK)
        engine.borrow(alice.id, multimeter.id, 1, DUE_NEXT_WEEK)
        engine.borrow(bob.id, drill.id, 1, DUE_NEXT_WEEK)
        engine.return_item(alice.id, multimeter.id)

        items = reports.list_user_items(alice.id)
        assert [entry.item_name for entry in items] == ["drill", "multimeter"]
        assert [entry.is_open for entry in items] == [True, False]

    def test_open_only(self, engine, reports, drill, multimeter, alice):
        engine.borrow(alice.id, drill.id, 2, DUE_NEXT_WEEK)
        engine.borrow(alice.id, multimeter.id, 1, DUE_NEXT_WEEK)
        engine.return_item(alice.id, multimeter.id)

        items = reports.list_user_items(alice.id, open_only=True)
        assert [entry.item_name for entry in items] == ["drill"]

    def test_unknown_user(self, reports):
        assert reports.list_user_items(999) == []


class TestActiveLoans:
    """Tests for the active-loan view."""

    def test_active_loans(self, engine, reports, drill, multimeter, alice, bob):
        engine.borrow(bob.id, drill.id, 1, DUE_NEXT_WEEK)
        engine.borrow(alice.id, drill.id, 1, DUE_NEXT_WEEK)
        engine.borrow(alice.id, drill.id, 2, DUE_NEXT_WEEK)
        engine.borrow(alice.id, multimeter.id, 1, DUE_NEXT_WEEK)

        active = reports.list_active_loans()
        assert [(e.user_name, e.item_name, e.quantity) for e in active] == [
            ("Alice Souza", "drill", 3),
            ("Alice Souza", "multimeter", 1),
            ("Bob Lima", "drill", 1),
        ]

    def test_filter_by_user(self, engine, reports, drill, alice, bob):
        engine.borrow(alice.id, drill.id, 1, DUE_NEXT_WEEK)
        engine.borrow(bob.id, drill.id, 1, DUE_NEXT_WEEK)

        active = reports.list_active_loans(user_id=bob.id)
        assert [e.user_name for e in active] == ["Bob Lima"]

    def test_fully_returned_pair_disappears(self, engine, reports, drill, alice):
        engine.borrow(alice.id, drill.id, 2, DUE_NEXT_WEEK)
        engine.return_item(alice.id, drill.id)

        assert reports.list_active_loans() == []


def test_default_clock_uses_today(db):
    manager = ReportManager(db)
    assert manager.today() == manager.clock().date()
