"""Export lending reports to CSV."""

from .csv_export import ExportResult, ReportExporter, ReportKind

__all__ = [
    "ExportResult",
    "ReportExporter",
    "ReportKind",
]
