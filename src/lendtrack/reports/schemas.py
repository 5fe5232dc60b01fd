"""Pydantic schemas for lending reports."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class LoanHistoryEntry(BaseModel):
    """One loan record with the borrower and item names."""

    loan_id: int
    user_id: int
    user_name: str
    item_id: int
    item_name: str
    quantity: int
    borrowed_at: datetime
    due_at: datetime
    returned_at: Optional[datetime] = None


class OverdueEntry(BaseModel):
    """An open loan past its due date."""

    loan_id: int
    user_id: int
    user_name: str
    item_id: int
    item_name: str
    quantity: int
    borrowed_at: datetime
    due_at: datetime
    days_overdue: int


class UserItemEntry(BaseModel):
    """A loan record of one user with the item name."""

    loan_id: int
    user_id: int
    item_id: int
    item_name: str
    quantity: int
    borrowed_at: datetime
    due_at: datetime
    returned_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.returned_at is None


class ActiveLoanEntry(BaseModel):
    """Units a user currently holds of an item."""

    user_id: int
    user_name: str
    item_id: int
    item_name: str
    quantity: int


class OverdueReport(BaseModel):
    """Overdue loans as of a given date."""

    as_of: date
    loans: list[OverdueEntry]
    total_overdue: int
    oldest_overdue_days: int
