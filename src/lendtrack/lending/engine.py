"""Lending transaction engine.

Borrow and return each run in a single database transaction that touches
three stores: item stock, the loan history and the active-loan aggregate.
Either all three change or none do.
"""

from datetime import date, datetime
from typing import Callable, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..catalog.models import Item
from ..config import get_config
from ..db.sqlite import Database, get_db
from ..errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ItemNotFoundError,
    LendingError,
    NoActiveLoanError,
    UserNotFoundError,
)
from ..users.models import User
from ..utils import utc_now
from . import aggregate, history
from .models import LoanRecord
from .schemas import LoanRecordView, ReturnPolicy, ReturnReceipt

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class LendingEngine:
    """Runs borrow and return transactions."""

    def __init__(
        self,
        db: Optional[Database] = None,
        clock: Optional[Clock] = None,
        return_policy: Optional[Union[ReturnPolicy, str]] = None,
    ):
        """Initialize lending engine.

        Args:
            db: Database instance
            clock: Callable returning the current time; defaults to UTC now
            return_policy: Units restored per return; defaults to the
                configured policy
        """
        self.db = db or get_db()
        self.clock = clock or utc_now
        if return_policy is None:
            return_policy = get_config().return_policy
        self.return_policy = ReturnPolicy(return_policy)

    # -------------------------------------------------------------------------
    # Borrow
    # -------------------------------------------------------------------------

    def borrow(
        self,
        user_id: int,
        item_id: int,
        quantity: int,
        due_at: Union[datetime, date],
    ) -> int:
        """Lend units of an item to a user.

        Appends an open loan record, takes the units out of stock and adds
        them to the user's active loan for the item.

        Args:
            user_id: Borrowing user
            item_id: Item to lend
            quantity: Units to lend
            due_at: When the units are due back

        Returns:
            ID of the new loan record

        Raises:
            InvalidQuantityError: If quantity is not positive
            ItemNotFoundError: If the item does not exist
            InsufficientStockError: If stock is lower than quantity
            UserNotFoundError: If the user does not exist
            TransactionConflictError: If a concurrent transaction won; retry
        """
        try:
            if quantity <= 0:
                raise InvalidQuantityError(quantity)
            with self.db.get_session() as session:
                loan_id = self._borrow(session, user_id, item_id, quantity, due_at)
        except LendingError as e:
            logger.info(
                "loan.borrow_rejected",
                user_id=user_id,
                item_id=item_id,
                quantity=quantity,
                reason=type(e).__name__,
            )
            raise

        logger.info(
            "loan.borrowed",
            loan_id=loan_id,
            user_id=user_id,
            item_id=item_id,
            quantity=quantity,
        )
        return loan_id

    def _borrow(
        self,
        session: Session,
        user_id: int,
        item_id: int,
        quantity: int,
        due_at: Union[datetime, date],
    ) -> int:
        item = self._lock_item(session, item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if item.stock < quantity:
            raise InsufficientStockError(item_id, requested=quantity, available=item.stock)
        if session.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

        record = history.append_record(
            session,
            user_id=user_id,
            item_id=item_id,
            quantity=quantity,
            borrowed_at=self.clock(),
            due_at=due_at,
        )
        item.stock -= quantity
        aggregate.add_units(session, user_id, item_id, quantity)
        session.flush()
        return record.id

    # -------------------------------------------------------------------------
    # Return
    # -------------------------------------------------------------------------

    def return_item(self, user_id: int, item_id: int) -> ReturnReceipt:
        """Close the user's oldest open loan for an item.

        The units put back into stock depend on the return policy: the loan's
        full quantity, or a single unit.

        Args:
            user_id: Returning user
            item_id: Item being returned

        Returns:
            ReturnReceipt with the closed loan and the resulting counts

        Raises:
            NoActiveLoanError: If the user has no open loan for the item
            AggregateMismatchError: If the active-loan counter is short
            TransactionConflictError: If a concurrent transaction won; retry
        """
        try:
            with self.db.get_session() as session:
                receipt = self._return(session, user_id, item_id)
        except LendingError as e:
            logger.info(
                "loan.return_rejected",
                user_id=user_id,
                item_id=item_id,
                reason=type(e).__name__,
            )
            raise

        logger.info(
            "loan.returned",
            loan_id=receipt.loan.id,
            user_id=user_id,
            item_id=item_id,
            units=receipt.units_restored,
            policy=self.return_policy.value,
        )
        return receipt

    def _return(self, session: Session, user_id: int, item_id: int) -> ReturnReceipt:
        # Lock order matches borrow: item, then history, then aggregate
        item = self._lock_item(session, item_id)
        if item is None:
            raise NoActiveLoanError(user_id, item_id)

        record = history.oldest_open_record(session, user_id, item_id)
        if record is None:
            raise NoActiveLoanError(user_id, item_id)

        units = self._units_to_restore(record.quantity)
        history.close_record(record, self.clock())
        item.stock += units
        still_out = aggregate.remove_units(session, user_id, item_id, units)
        session.flush()

        return ReturnReceipt(
            loan=LoanRecordView.model_validate(record),
            units_restored=units,
            units_still_out=still_out,
            item_stock=item.stock,
        )

    def _units_to_restore(self, borrowed: int) -> int:
        if self.return_policy is ReturnPolicy.SINGLE_UNIT:
            return 1
        return borrowed

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _lock_item(session: Session, item_id: int) -> Optional[Item]:
        stmt = (
            select(Item)
            .where(Item.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    def get_loan(self, loan_id: int) -> Optional[LoanRecordView]:
        """Get a loan record by ID."""
        with self.db.get_session() as session:
            record = session.get(LoanRecord, loan_id)
            if record is None:
                return None
            return LoanRecordView.model_validate(record)

    def get_active_quantity(self, user_id: int, item_id: int) -> int:
        """Units a user currently holds of an item, from the aggregate."""
        with self.db.get_session() as session:
            active = aggregate.get_active_loan(session, user_id, item_id)
            return active.quantity if active else 0
