"""Tests for CSV export of lending reports."""

import csv
from datetime import date, timedelta
from io import StringIO

import pytest

from lendtrack.export import ExportResult, ReportExporter, ReportKind

from conftest import NOW


class TestReportKind:
    """Tests for ReportKind enum."""

    def test_from_string(self):
        assert ReportKind("history") == ReportKind.HISTORY
        assert ReportKind("overdue") == ReportKind.OVERDUE


class TestReportExporter:
    """Tests for ReportExporter class."""

    @pytest.fixture
    def exporter(self, reports):
        return ReportExporter(reports)

    @pytest.fixture
    def loans(self, engine, clock, drill, multimeter, alice, bob):
        """One returned loan, one overdue loan and one loan not yet due."""
        engine.borrow(alice.id, drill.id, 2, NOW + timedelta(days=7))
        engine.borrow(bob.id, multimeter.id, 1, NOW - timedelta(days=2))
        engine.borrow(bob.id, drill.id, 1, NOW + timedelta(days=7))
        clock.now = NOW + timedelta(hours=1)
        engine.return_item(alice.id, drill.id)

    def test_history_to_string(self, exporter, loans):
        rows = list(csv.DictReader(StringIO(exporter.export_to_string(ReportKind.HISTORY))))

        assert len(rows) == 3
        assert list(rows[0].keys()) == ReportExporter.HISTORY_COLUMNS
        assert rows[0]["user_name"] == "Alice Souza"
        assert rows[0]["returned_at"] == "2026-03-10T15:30:00+00:00"
        assert rows[1]["returned_at"] == ""

    def test_overdue_to_string(self, exporter, loans):
        rows = list(csv.DictReader(StringIO(exporter.export_to_string(ReportKind.OVERDUE))))

        assert len(rows) == 1
        assert list(rows[0].keys()) == ReportExporter.OVERDUE_COLUMNS
        assert rows[0]["item_name"] == "multimeter"
        assert rows[0]["days_overdue"] == "2"

    def test_overdue_as_of(self, exporter, loans):
        output = exporter.export_to_string(ReportKind.OVERDUE, as_of=date(2026, 3, 20))
        rows = list(csv.DictReader(StringIO(output)))
        assert [row["item_name"] for row in rows] == ["multimeter", "drill"]

    def test_empty_export_has_header(self, exporter):
        output = exporter.export_to_string(ReportKind.HISTORY)
        assert output.strip() == ",".join(ReportExporter.HISTORY_COLUMNS)

    def test_export_to_file(self, exporter, loans, tmp_path):
        output_path = tmp_path / "history.csv"

        result = exporter.export(ReportKind.HISTORY, output_path)

        assert result.success
        assert result.records_exported == 3
        assert result.kind == ReportKind.HISTORY
        assert result.file_path == output_path
        with open(output_path, newline="", encoding="utf-8") as f:
            assert len(list(csv.DictReader(f))) == 3

    def test_export_to_missing_directory(self, exporter, tmp_path):
        result = exporter.export(ReportKind.OVERDUE, tmp_path / "missing" / "out.csv")

        assert isinstance(result, ExportResult)
        assert not result.success
        assert result.error
