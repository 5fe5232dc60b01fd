"""SQLAlchemy declarative base and shared column helpers.

Tables are declared next to the code that owns them:
- items: catalog/models.py
- users: users/models.py
- loan_history, active_loans: lending/models.py
"""

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..utils import utc_now


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def created_at_column() -> Mapped[str]:
    """UTC ISO timestamp column filled in on insert."""
    return mapped_column(
        String(32), default=lambda: utc_now().isoformat(timespec="seconds")
    )
