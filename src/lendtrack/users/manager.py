"""User registry operations."""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..db.sqlite import Database, get_db
from ..errors import DuplicateUserError
from .models import User
from .schemas import UserCreate, UserUpdate

logger = structlog.get_logger(__name__)


class UserRegistry:
    """Manages borrower records."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    def create_user(self, data: UserCreate) -> User:
        """Register a new user.

        Raises:
            DuplicateUserError: If the national ID is already registered
        """
        with self.db.get_session() as session:
            user = User(
                national_id=data.national_id,
                name=data.name,
                phone=data.phone,
                course=data.course,
                email=data.email,
            )
            session.add(user)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateUserError(data.national_id) from e
            session.refresh(user)
            session.expunge(user)

        logger.info("user.created", user_id=user.id)
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self.db.get_session() as session:
            user = session.get(User, user_id)
            if user:
                session.expunge(user)
            return user

    def get_user_by_national_id(self, national_id: str) -> Optional[User]:
        with self.db.get_session() as session:
            stmt = select(User).where(User.national_id == national_id)
            user = session.execute(stmt).scalar_one_or_none()
            if user:
                session.expunge(user)
            return user

    def list_users(self, course: Optional[str] = None) -> list[User]:
        """List users ordered by name, optionally for one course."""
        with self.db.get_session() as session:
            stmt = select(User).order_by(User.name)
            if course:
                stmt = stmt.where(User.course == course)

            users = session.execute(stmt).scalars().all()
            for user in users:
                session.expunge(user)
            return list(users)

    def update_user(self, user_id: int, data: UserUpdate) -> Optional[User]:
        with self.db.get_session() as session:
            user = session.get(User, user_id)
            if not user:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                # Only email may be cleared
                if value is None and field != "email":
                    continue
                setattr(user, field, value)

            session.flush()
            session.refresh(user)
            session.expunge(user)
            return user

    def delete_user(self, user_id: int) -> bool:
        """Delete a user together with their loan history and active loans.

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            user = session.get(User, user_id)
            if not user:
                return False

            session.delete(user)

        logger.info("user.deleted", user_id=user_id)
        return True
