"""Pydantic schemas for the user registry."""

from typing import Optional

from pydantic import BaseModel, Field

from .models import DEFAULT_COURSE


class UserBase(BaseModel):
    """Base user fields."""

    national_id: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    course: str = Field(DEFAULT_COURSE, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)


class UserCreate(UserBase):
    """Schema for creating a user."""

    pass


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    course: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)


class UserResponse(UserBase):
    """Schema for user responses."""

    id: int

    model_config = {"from_attributes": True}
