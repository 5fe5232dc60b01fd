"""Report manager for read-only lending views.

Every view is computed from the stores on each call; nothing is cached, so
overdue figures always reflect the current clock.
"""

from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy import select

from ..catalog.models import Item
from ..db.sqlite import Database, get_db
from ..lending.models import ActiveLoan, LoanRecord
from ..users.models import User
from ..utils import parse_iso, to_utc, utc_now
from .schemas import (
    ActiveLoanEntry,
    LoanHistoryEntry,
    OverdueEntry,
    OverdueReport,
    UserItemEntry,
)


class ReportManager:
    """Builds lending reports."""

    def __init__(
        self,
        db: Optional[Database] = None,
        clock: Optional[Callable] = None,
    ):
        """Initialize report manager.

        Args:
            db: Database instance
            clock: Callable returning the current time; defaults to UTC now
        """
        self.db = db or get_db()
        self.clock = clock or utc_now

    def today(self) -> date:
        """Current date in UTC according to the clock."""
        return self.clock().date()

    def _as_of_date(self, as_of: Optional[date]) -> date:
        if as_of is None:
            return self.today()
        if isinstance(as_of, datetime):
            return to_utc(as_of).date()
        return as_of

    def list_history(self) -> list[LoanHistoryEntry]:
        """All loan records with user and item names, in creation order.

        Returns:
            List of history entries
        """
        with self.db.get_session() as session:
            stmt = (
                select(
                    LoanRecord.id.label("loan_id"),
                    LoanRecord.user_id,
                    User.name.label("user_name"),
                    LoanRecord.item_id,
                    Item.name.label("item_name"),
                    LoanRecord.quantity,
                    LoanRecord.borrowed_at,
                    LoanRecord.due_at,
                    LoanRecord.returned_at,
                )
                .join(User, LoanRecord.user_id == User.id)
                .join(Item, LoanRecord.item_id == Item.id)
                .order_by(LoanRecord.id)
            )
            rows = session.execute(stmt).all()
            return [LoanHistoryEntry(**row._mapping) for row in rows]

    def list_overdue(self, as_of: Optional[date] = None) -> list[OverdueEntry]:
        """Open loans whose due date is before as_of.

        Args:
            as_of: Reference date (default: today)

        Returns:
            Overdue entries, most overdue first
        """
        as_of = self._as_of_date(as_of)

        with self.db.get_session() as session:
            # Stored timestamps are UTC ISO strings; a bare date sorts before
            # any timestamp on that day
            stmt = (
                select(
                    LoanRecord.id.label("loan_id"),
                    LoanRecord.user_id,
                    User.name.label("user_name"),
                    LoanRecord.item_id,
                    Item.name.label("item_name"),
                    LoanRecord.quantity,
                    LoanRecord.borrowed_at,
                    LoanRecord.due_at,
                )
                .join(User, LoanRecord.user_id == User.id)
                .join(Item, LoanRecord.item_id == Item.id)
                .where(
                    LoanRecord.returned_at.is_(None),
                    LoanRecord.due_at < as_of.isoformat(),
                )
                .order_by(LoanRecord.due_at, LoanRecord.id)
            )
            rows = session.execute(stmt).all()

        return [
            OverdueEntry(
                **row._mapping,
                days_overdue=(as_of - parse_iso(row.due_at).date()).days,
            )
            for row in rows
        ]

    def get_overdue_report(self, as_of: Optional[date] = None) -> OverdueReport:
        """Overdue loans with totals."""
        as_of = self._as_of_date(as_of)
        loans = self.list_overdue(as_of)
        return OverdueReport(
            as_of=as_of,
            loans=loans,
            total_overdue=len(loans),
            oldest_overdue_days=max((loan.days_overdue for loan in loans), default=0),
        )

    def list_user_items(
        self, user_id: int, open_only: bool = False
    ) -> list[UserItemEntry]:
        """Loan records of one user with item names.

        Args:
            user_id: User ID
            open_only: Only return loans not yet returned

        Returns:
            List of entries in creation order
        """
        with self.db.get_session() as session:
            stmt = (
                select(
                    LoanRecord.id.label("loan_id"),
                    LoanRecord.user_id,
                    LoanRecord.item_id,
                    Item.name.label("item_name"),
                    LoanRecord.quantity,
                    LoanRecord.borrowed_at,
                    LoanRecord.due_at,
                    LoanRecord.returned_at,
                )
                .join(Item, LoanRecord.item_id == Item.id)
                .where(LoanRecord.user_id == user_id)
                .order_by(LoanRecord.id)
            )
            if open_only:
                stmt = stmt.where(LoanRecord.returned_at.is_(None))

            rows = session.execute(stmt).all()
            return [UserItemEntry(**row._mapping) for row in rows]

    def list_active_loans(self, user_id: Optional[int] = None) -> list[ActiveLoanEntry]:
        """Current outstanding units per (user, item) pair.

        Args:
            user_id: Only return this user's active loans
        """
        with self.db.get_session() as session:
            stmt = (
                select(
                    ActiveLoan.user_id,
                    User.name.label("user_name"),
                    ActiveLoan.item_id,
                    Item.name.label("item_name"),
                    ActiveLoan.quantity,
                )
                .join(User, ActiveLoan.user_id == User.id)
                .join(Item, ActiveLoan.item_id == Item.id)
                .order_by(User.name, Item.name)
            )
            if user_id is not None:
                stmt = stmt.where(ActiveLoan.user_id == user_id)

            rows = session.execute(stmt).all()
            return [ActiveLoanEntry(**row._mapping) for row in rows]
