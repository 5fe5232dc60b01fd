"""Pydantic schemas for the item catalog."""

from typing import Optional

from pydantic import BaseModel, Field


class ItemBase(BaseModel):
    """Base item fields."""

    name: str = Field(..., min_length=1, max_length=255)
    location: Optional[int] = None


class ItemCreate(ItemBase):
    """Schema for creating an item."""

    stock: int = Field(0, ge=0)


class ItemUpdate(BaseModel):
    """Schema for updating an item.

    Stock is not editable here: it moves only through loans and restocking.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[int] = None


class ItemResponse(ItemBase):
    """Schema for item responses."""

    id: int
    stock: int

    model_config = {"from_attributes": True}
