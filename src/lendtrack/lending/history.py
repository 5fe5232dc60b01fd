"""Loan history store.

Functions here run inside a caller's session so that history writes share
the transaction that moves stock and the active-loan counter.
"""

from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..utils import to_utc_iso
from .models import LoanRecord


def append_record(
    session: Session,
    user_id: int,
    item_id: int,
    quantity: int,
    borrowed_at: datetime,
    due_at: Union[datetime, date],
) -> LoanRecord:
    """Append an open loan record and flush it so its ID is assigned."""
    record = LoanRecord(
        user_id=user_id,
        item_id=item_id,
        quantity=quantity,
        borrowed_at=to_utc_iso(borrowed_at),
        due_at=to_utc_iso(due_at),
    )
    session.add(record)
    session.flush()
    return record


def oldest_open_record(
    session: Session, user_id: int, item_id: int
) -> Optional[LoanRecord]:
    """Lock and return the earliest open record for a (user, item) pair."""
    stmt = (
        select(LoanRecord)
        .where(
            LoanRecord.user_id == user_id,
            LoanRecord.item_id == item_id,
            LoanRecord.returned_at.is_(None),
        )
        .order_by(LoanRecord.id)
        .limit(1)
        .with_for_update()
    )
    return session.execute(stmt).scalar_one_or_none()


def close_record(record: LoanRecord, returned_at: datetime) -> None:
    """Stamp the return time on an open record."""
    if not record.is_open:
        raise ValueError(f"Loan record {record.id} is already closed")
    record.returned_at = to_utc_iso(returned_at)


def open_units(session: Session, user_id: int, item_id: int) -> int:
    """Sum the quantities of all open records for a (user, item) pair.

    Not used by borrow or return. Audits compare it against the active-loan
    counter, which must always hold the same number.
    """
    stmt = select(func.coalesce(func.sum(LoanRecord.quantity), 0)).where(
        LoanRecord.user_id == user_id,
        LoanRecord.item_id == item_id,
        LoanRecord.returned_at.is_(None),
    )
    return session.execute(stmt).scalar_one()
