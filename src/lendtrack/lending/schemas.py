"""Pydantic schemas and enums for lending."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ReturnPolicy(str, Enum):
    """How many units a return puts back on the shelf."""

    FULL_QUANTITY = "full_quantity"  # The quantity recorded on the loan
    SINGLE_UNIT = "single_unit"  # Always one unit, whatever was borrowed


class LoanRecordView(BaseModel):
    """Read-only view of a loan history record."""

    id: int
    user_id: int
    item_id: int
    quantity: int
    borrowed_at: datetime
    due_at: datetime
    returned_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @property
    def is_open(self) -> bool:
        return self.returned_at is None


class ReturnReceipt(BaseModel):
    """Outcome of a return."""

    loan: LoanRecordView
    units_restored: int
    units_still_out: int
    item_stock: int
