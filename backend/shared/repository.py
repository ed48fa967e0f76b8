"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
SQLAlchemy session access and shared utilities for data operations.
"""

from typing import TypeVar, Generic
from sqlalchemy.orm import Session


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - SQLAlchemy session access via self._db
    - Generic type parameter for the ORM row type

    Repositories never commit. The service layer owns transaction
    boundaries (see shared.database.transaction).

    Example:
        class UserRepository(BaseRepository[UserRow]):
            def get_by_id(self, user_id: str) -> Optional[UserRow]:
                return self._db.get(UserRow, user_id)
    """

    def __init__(self, db: Session) -> None:
        """
        Initialize the repository with a database session.

        Args:
            db: SQLAlchemy session for the current unit of work.
        """
        self._db = db

    def add(self, row: T) -> T:
        """Stage a new row and flush so generated values are populated."""
        self._db.add(row)
        self._db.flush()
        return row
