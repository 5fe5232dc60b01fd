"""Active loan aggregate.

Keeps one counter row per (user, item) pair holding the units currently out.
A row exists only while its quantity is positive.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..errors import AggregateMismatchError
from .models import ActiveLoan

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_active_loan(
    session: Session, user_id: int, item_id: int, lock: bool = False
) -> Optional[ActiveLoan]:
    """Fetch the counter row for a pair, optionally locking it."""
    stmt = (
        select(ActiveLoan)
        .where(ActiveLoan.user_id == user_id, ActiveLoan.item_id == item_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def add_units(session: Session, user_id: int, item_id: int, quantity: int) -> None:
    """Create the counter row or add to it."""
    insert = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
    if insert is not None:
        table = ActiveLoan.__table__
        stmt = insert(table).values(user_id=user_id, item_id=item_id, quantity=quantity)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.item_id],
            set_={"quantity": table.c.quantity + stmt.excluded.quantity},
        )
        session.execute(stmt)
        return

    active = get_active_loan(session, user_id, item_id, lock=True)
    if active is None:
        session.add(ActiveLoan(user_id=user_id, item_id=item_id, quantity=quantity))
    else:
        active.quantity += quantity


def remove_units(session: Session, user_id: int, item_id: int, units: int) -> int:
    """Subtract units from the counter row, deleting it at zero.

    Returns:
        Units still outstanding for the pair

    Raises:
        AggregateMismatchError: If the row holds fewer units than requested
    """
    active = get_active_loan(session, user_id, item_id, lock=True)
    held = active.quantity if active else 0
    if held < units:
        raise AggregateMismatchError(user_id, item_id, held=held, requested=units)

    remaining = held - units
    if remaining == 0:
        session.delete(active)
    else:
        active.quantity = remaining
    return remaining
