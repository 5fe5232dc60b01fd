"""CSV export of lending reports."""

import csv
from dataclasses import dataclass
from datetime import date
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Optional

from ..reports.manager import ReportManager


class ReportKind(str, Enum):
    """Reports that can be exported."""

    HISTORY = "history"
    OVERDUE = "overdue"


@dataclass
class ExportResult:
    """Result of an export operation."""

    success: bool
    file_path: Optional[Path] = None
    records_exported: int = 0
    kind: Optional[ReportKind] = None
    error: Optional[str] = None


class ReportExporter:
    """Writes lending reports as CSV."""

    HISTORY_COLUMNS = [
        "loan_id",
        "user_id",
        "user_name",
        "item_id",
        "item_name",
        "quantity",
        "borrowed_at",
        "due_at",
        "returned_at",
    ]

    OVERDUE_COLUMNS = [
        "loan_id",
        "user_id",
        "user_name",
        "item_id",
        "item_name",
        "quantity",
        "borrowed_at",
        "due_at",
        "days_overdue",
    ]

    def __init__(self, reports: Optional[ReportManager] = None):
        """Initialize exporter.

        Args:
            reports: Report manager to read from
        """
        self.reports = reports or ReportManager()

    def export(
        self,
        kind: ReportKind,
        output_path: Path,
        as_of: Optional[date] = None,
    ) -> ExportResult:
        """Export a report to a CSV file.

        Args:
            kind: Which report to export
            output_path: Path for output file
            as_of: Reference date for the overdue report

        Returns:
            ExportResult with success status and details
        """
        columns, rows = self._collect(kind, as_of)
        try:
            with open(output_path, "w", newline="", encoding="utf-8") as f:
                self._write(f, columns, rows)
        except OSError as e:
            return ExportResult(success=False, kind=kind, error=str(e))

        return ExportResult(
            success=True,
            file_path=output_path,
            records_exported=len(rows),
            kind=kind,
        )

    def export_to_string(self, kind: ReportKind, as_of: Optional[date] = None) -> str:
        """Export a report to a CSV string."""
        columns, rows = self._collect(kind, as_of)
        output = StringIO()
        self._write(output, columns, rows)
        return output.getvalue()

    def _collect(
        self, kind: ReportKind, as_of: Optional[date]
    ) -> tuple[list[str], list[dict]]:
        if kind == ReportKind.OVERDUE:
            entries = self.reports.list_overdue(as_of)
            columns = self.OVERDUE_COLUMNS
        else:
            entries = self.reports.list_history()
            columns = self.HISTORY_COLUMNS

        rows = []
        for entry in entries:
            row = entry.model_dump(include=set(columns))
            for key, value in row.items():
                if hasattr(value, "isoformat"):
                    row[key] = value.isoformat()
                elif value is None:
                    row[key] = ""
            rows.append(row)
        return columns, rows

    @staticmethod
    def _write(stream, columns: list[str], rows: list[dict]) -> None:
        writer = csv.DictWriter(stream, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)
