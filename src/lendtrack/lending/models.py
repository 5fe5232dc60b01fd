"""SQLAlchemy models for lending.

Tables:
- loan_history: Append-only log of loans, one row per borrow
- active_loans: Units currently outstanding per (user, item) pair
"""

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..catalog.models import Item
from ..db.models import Base
from ..users.models import User


class LoanRecord(Base):
    """Loan record - one borrow, closed once by a return."""

    __tablename__ = "loan_history"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_loan_history_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    # Increasing ID doubles as creation order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # UTC ISO timestamps
    borrowed_at: Mapped[str] = mapped_column(String(32), nullable=False)
    due_at: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    returned_at: Mapped[Optional[str]] = mapped_column(String(32))

    # Relationships
    user: Mapped["User"] = relationship("User")
    item: Mapped["Item"] = relationship("Item")

    def __repr__(self) -> str:
        return (
            f"<LoanRecord(id={self.id}, user_id={self.user_id}, "
            f"item_id={self.item_id}, quantity={self.quantity})>"
        )

    @property
    def is_open(self) -> bool:
        """Check if the loan has not been returned."""
        return self.returned_at is None


class ActiveLoan(Base):
    """Active loan - running total of units a user holds of one item."""

    __tablename__ = "active_loans"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_active_loans_quantity_positive"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ActiveLoan(user_id={self.user_id}, item_id={self.item_id}, "
            f"quantity={self.quantity})>"
        )
