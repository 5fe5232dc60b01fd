"""Item catalog: lendable items and their available stock."""

from .manager import CatalogManager
from .models import Item
from .schemas import ItemCreate, ItemUpdate, ItemResponse

__all__ = [
    "CatalogManager",
    "Item",
    "ItemCreate",
    "ItemUpdate",
    "ItemResponse",
]
