"""Catalog manager for item records and restocking."""

from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..db.sqlite import Database, get_db
from ..errors import DuplicateItemError, InvalidQuantityError, ItemNotFoundError
from .models import Item
from .schemas import ItemCreate, ItemUpdate

logger = structlog.get_logger(__name__)


class CatalogManager:
    """Manages the item catalog."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize catalog manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def create_item(self, data: ItemCreate) -> Item:
        """Create a new item.

        Args:
            data: Item creation data

        Returns:
            Created item

        Raises:
            DuplicateItemError: If an item with the same name exists
        """
        with self.db.get_session() as session:
            item = Item(name=data.name, location=data.location, stock=data.stock)
            session.add(item)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateItemError(data.name) from e
            session.refresh(item)
            session.expunge(item)

        logger.info("item.created", item_id=item.id, name=item.name, stock=item.stock)
        return item

    def get_item(self, item_id: int) -> Optional[Item]:
        """Get an item by ID.

        Args:
            item_id: Item ID

        Returns:
            Item or None
        """
        with self.db.get_session() as session:
            item = session.get(Item, item_id)
            if item:
                session.expunge(item)
            return item

    def get_item_by_name(self, name: str) -> Optional[Item]:
        """Get an item by name (case insensitive)."""
        with self.db.get_session() as session:
            stmt = select(Item).where(func.lower(Item.name) == name.lower())
            item = session.execute(stmt).scalar_one_or_none()
            if item:
                session.expunge(item)
            return item

    def list_items(self, in_stock_only: bool = False) -> list[Item]:
        """List items ordered by name.

        Args:
            in_stock_only: Only return items with stock left

        Returns:
            List of items
        """
        with self.db.get_session() as session:
            stmt = select(Item).order_by(Item.name)
            if in_stock_only:
                stmt = stmt.where(Item.stock > 0)

            items = session.execute(stmt).scalars().all()
            for item in items:
                session.expunge(item)
            return list(items)

    def update_item(self, item_id: int, data: ItemUpdate) -> Optional[Item]:
        """Update an item's name or location.

        Args:
            item_id: Item ID
            data: Update data

        Returns:
            Updated item or None
        """
        with self.db.get_session() as session:
            item = session.get(Item, item_id)
            if not item:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "name" and value is None:
                    continue
                setattr(item, field, value)

            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateItemError(data.name) from e
            session.refresh(item)
            session.expunge(item)
            return item

    def restock(self, item_id: int, units: int) -> Item:
        """Add newly acquired units to an item's stock.

        Args:
            item_id: Item ID
            units: Units to add (must be positive)

        Returns:
            Updated item

        Raises:
            InvalidQuantityError: If units is not positive
            ItemNotFoundError: If the item does not exist
        """
        if units <= 0:
            raise InvalidQuantityError(units)

        with self.db.get_session() as session:
            stmt = select(Item).where(Item.id == item_id).with_for_update()
            item = session.execute(stmt).scalar_one_or_none()
            if not item:
                raise ItemNotFoundError(item_id)

            item.stock += units
            session.flush()
            session.refresh(item)
            session.expunge(item)

        logger.info("item.restocked", item_id=item_id, units=units, stock=item.stock)
        return item

    def delete_item(self, item_id: int) -> bool:
        """Delete an item together with its loan history and active loans.

        Args:
            item_id: Item ID

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            item = session.get(Item, item_id)
            if not item:
                return False

            session.delete(item)

        logger.info("item.deleted", item_id=item_id)
        return True
