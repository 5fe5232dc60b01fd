"""User registry: borrower identity records."""

from .manager import UserRegistry
from .models import User
from .schemas import UserCreate, UserUpdate, UserResponse

__all__ = [
    "UserRegistry",
    "User",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
]
