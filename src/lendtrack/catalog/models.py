"""SQLAlchemy model for the item catalog.

Tables:
- items: Lendable items and their available stock
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, created_at_column


class Item(Base):
    """Item model - a lendable thing and how many units are on the shelf."""

    __tablename__ = "items"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Shelf or cabinet number
    location: Mapped[Optional[int]] = mapped_column(Integer)

    # Units available to lend; units on loan are not counted here
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[str] = created_at_column()

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', stock={self.stock})>"

    @property
    def in_stock(self) -> bool:
        """Check if at least one unit can be lent."""
        return self.stock > 0
