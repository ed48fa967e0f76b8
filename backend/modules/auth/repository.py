"""
User repository for database access.

Encapsulates every query against the users table. Emails are expected to be
normalized (lowercase) by the caller.
"""

from typing import Optional

from sqlalchemy import select

from shared.repository import BaseRepository
from .tables import UserRow


class UserRepository(BaseRepository[UserRow]):
    """
    Repository for user records.

    Note: This repository does NOT commit. The auth service decides
    where a unit of work begins and ends.
    """

    def get_by_id(self, user_id: str) -> Optional[UserRow]:
        return self._db.get(UserRow, user_id)

    def get_by_email(self, email: str) -> Optional[UserRow]:
        return self._db.scalars(select(UserRow).where(UserRow.email == email)).first()

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def get_by_verification_token(self, token: str) -> Optional[UserRow]:
        """Find the user whose pending verification token matches."""
        return self._db.scalars(
            select(UserRow).where(UserRow.email_verification_token == token)
        ).first()

    def get_by_consumed_token(self, token: str) -> Optional[UserRow]:
        """Find the user who already completed verification with this token."""
        return self._db.scalars(
            select(UserRow).where(UserRow.consumed_verification_token == token)
        ).first()

    def create(
        self,
        email: str,
        name: str,
        password_hash: str,
        verification_token: str,
        verification_expires,
    ) -> UserRow:
        row = UserRow(
            email=email,
            name=name,
            password_hash=password_hash,
            email_verified=False,
            email_verification_token=verification_token,
            email_verification_expires=verification_expires,
        )
        return self.add(row)

    def mark_verified(self, row: UserRow) -> UserRow:
        """Flip the verified flag and retire the pending token."""
        row.consumed_verification_token = row.email_verification_token
        row.email_verified = True
        row.email_verification_token = None
        row.email_verification_expires = None
        self._db.flush()
        return row
