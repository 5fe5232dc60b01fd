"""Errors raised by the lending core.

Borrow reports a missing item and a short stock through two distinct
exceptions. Both derive from ``InsufficientStockOrNotFound`` so callers that
only care whether the item could be lent can catch a single type.
"""

from typing import Optional


class LendingError(Exception):
    """Base class for all lending errors."""


class NotFoundError(LendingError):
    """A referenced item or user does not exist."""

    entity = "record"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity.capitalize()} {entity_id} not found")


class InsufficientStockOrNotFound(LendingError):
    """The item cannot be lent: it is missing or short on stock."""


class ItemNotFoundError(NotFoundError, InsufficientStockOrNotFound):
    """No item with the given ID."""

    entity = "item"


class UserNotFoundError(NotFoundError):
    """No user with the given ID."""

    entity = "user"


class InsufficientStockError(InsufficientStockOrNotFound):
    """Item stock is lower than the requested quantity."""

    def __init__(self, item_id: int, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Item {item_id} has {available} unit(s) in stock, {requested} requested"
        )


class InvalidQuantityError(LendingError):
    """Quantity must be a positive integer."""

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be positive, got {quantity}")


class NoActiveLoanError(LendingError):
    """The user has no open loan for the item."""

    def __init__(self, user_id: int, item_id: int):
        self.user_id = user_id
        self.item_id = item_id
        super().__init__(f"User {user_id} has no open loan for item {item_id}")


class AggregateMismatchError(LendingError):
    """The active-loan counter holds fewer units than a return would remove."""

    def __init__(self, user_id: int, item_id: int, held: int, requested: int):
        self.user_id = user_id
        self.item_id = item_id
        self.held = held
        self.requested = requested
        super().__init__(
            f"Active loan for user {user_id}, item {item_id} holds {held} unit(s), "
            f"cannot remove {requested}"
        )


class TransactionConflictError(LendingError):
    """The storage layer aborted the transaction; retry the whole operation."""

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        message = "Transaction aborted by a concurrent update"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DuplicateItemError(LendingError):
    """An item with the same name already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Item '{name}' already exists")


class DuplicateUserError(LendingError):
    """A user with the same national ID already exists."""

    def __init__(self, national_id: str):
        self.national_id = national_id
        super().__init__(f"User with national ID '{national_id}' already exists")
