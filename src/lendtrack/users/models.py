"""SQLAlchemy model for the user registry.

Tables:
- users: People who borrow items
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, created_at_column

DEFAULT_COURSE = "none"


class User(Base):
    """User model - someone allowed to borrow items."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    national_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    course: Mapped[str] = mapped_column(
        String(100), nullable=False, default=DEFAULT_COURSE
    )
    email: Mapped[Optional[str]] = mapped_column(String(255))

    created_at: Mapped[str] = created_at_column()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}')>"
