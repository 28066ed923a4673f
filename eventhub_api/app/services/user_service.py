"""
Business logic for users.

Users are identified by a unique e-mail address.  Uniqueness is
enforced by the ``UNIQUE`` constraint on ``users.email``; the explicit
lookup before the insert only exists to give the usual case a clear
error message, a racing duplicate still ends up as ``ConflictError``.
"""

import logging
import sqlite3
from typing import Optional

from ..core.db import get_connection
from ..core.errors import ConflictError, NotFoundError
from ..core.security import hash_password, verify_password
from ..core.utils import format_timestamp, generate_id, utcnow
from ..schemas.user import UserCreate, UserRead
from .media_service import get_media_storage

logger = logging.getLogger(__name__)


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(id=row["id"], email=row["email"], name=row["name"], created_at=row["created_at"])


class UserService:
    """Registration, authentication and deletion of users."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Register a new user and return it.

        Raises ``ConflictError`` if the e-mail address is taken.
        """
        email = data.email.lower()
        logger.info("Registering user %s", email)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if existing:
                raise ConflictError("Email already registered")
            user_id = generate_id("user")
            created_at = format_timestamp(utcnow())
            try:
                cursor.execute(
                    "INSERT INTO users (id, email, password, name, created_at) VALUES (?, ?, ?, ?, ?)",
                    (user_id, email, hash_password(data.password), data.name, created_at),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Email already registered") from exc
            conn.commit()
            return UserRead(id=user_id, email=email, name=data.name, created_at=created_at)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user if the credentials match, otherwise ``None``.

        An unknown e-mail and a wrong password are deliberately not
        distinguished.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, name, password, created_at FROM users WHERE email = ?",
                (email.lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password"]):
            logger.info("Failed login attempt for %s", email)
            return None
        return _row_to_user(row)

    @classmethod
    async def get_user_by_id(cls, user_id: str) -> Optional[UserRead]:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, name, created_at FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return _row_to_user(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def set_password(cls, email: str, password: str) -> UserRead:
        """Replace a user's password and drop all of their sessions."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, name, created_at FROM users WHERE email = ?", (email.lower(),)
            ).fetchone()
            if not row:
                raise NotFoundError(f"No user found with email {email}")
            conn.execute(
                "UPDATE users SET password = ? WHERE id = ?", (hash_password(password), row["id"])
            )
            conn.execute("DELETE FROM sessions WHERE user_id = ?", (row["id"],))
            conn.commit()
            return _row_to_user(row)
        finally:
            conn.close()

    @classmethod
    async def delete_user(cls, user_id: str) -> None:
        """Delete a user.

        Owned events, their attendee records, the user's own attendance
        records and sessions are removed by the schema's cascading
        foreign keys.
        """
        conn = get_connection()
        try:
            banners = [
                row["banner_url"]
                for row in conn.execute(
                    "SELECT banner_url FROM events WHERE created_by = ? AND banner_url IS NOT NULL",
                    (user_id,),
                )
            ]
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("User not found")
            conn.commit()
            logger.info("Deleted user %s", user_id)
        finally:
            conn.close()
        storage = get_media_storage()
        for url in banners:
            storage.discard_url(url)
