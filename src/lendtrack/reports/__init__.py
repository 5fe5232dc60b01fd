"""Read-only lending reports: history, overdue loans and per-user items."""

from .manager import ReportManager
from .schemas import (
    ActiveLoanEntry,
    LoanHistoryEntry,
    OverdueEntry,
    OverdueReport,
    UserItemEntry,
)

__all__ = [
    "ReportManager",
    "ActiveLoanEntry",
    "LoanHistoryEntry",
    "OverdueEntry",
    "OverdueReport",
    "UserItemEntry",
]
