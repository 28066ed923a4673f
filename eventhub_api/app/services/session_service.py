"""
Server-side sessions.

``SessionService`` is the collaborator the rest of the application uses
for authentication state: it creates sessions, validates an opaque
session identifier into ``(session, user)`` and invalidates sessions.
Session identifiers are random tokens from ``secrets``; nothing is
signed or encrypted, a session is valid exactly as long as its row
exists and has not expired.

Sessions are sliding: validating a session that has used up more than
half of its lifetime pushes ``expires_at`` forward by a full lifetime
and marks the returned record ``fresh`` so the caller can re-issue the
cookie.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from ..core.config import settings
from ..core.db import get_connection
from ..core.utils import format_timestamp, generate_id, parse_timestamp, utcnow
from ..schemas.user import UserRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    """A validated or newly created session."""

    id: str
    user_id: str
    expires_at: datetime
    fresh: bool = False


class SessionService:
    """Create, validate and invalidate sessions stored in SQLite."""

    @staticmethod
    def _lifetime() -> timedelta:
        return timedelta(days=settings.session_expire_days)

    @classmethod
    async def create_session(cls, user_id: str) -> SessionRecord:
        session_id = generate_id(nbytes=30)
        expires_at = utcnow() + cls._lifetime()
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, ?)",
                (session_id, user_id, format_timestamp(expires_at)),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Created session for user %s", user_id)
        return SessionRecord(id=session_id, user_id=user_id, expires_at=expires_at, fresh=True)

    @classmethod
    async def validate_session(
        cls, session_id: str
    ) -> Tuple[Optional[SessionRecord], Optional[UserRead]]:
        """Resolve a session identifier.

        Returns ``(session, user)`` for a live session and
        ``(None, None)`` if the session is unknown or expired.  Expired
        rows are deleted on the way.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                """
                SELECT s.id AS session_id, s.expires_at, u.id, u.email, u.name, u.created_at
                FROM sessions s JOIN users u ON u.id = s.user_id
                WHERE s.id = ?
                """,
                (session_id,),
            ).fetchone()
            if not row:
                return None, None

            now = utcnow()
            expires_at = parse_timestamp(row["expires_at"])
            if expires_at <= now:
                conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
                conn.commit()
                return None, None

            fresh = False
            lifetime = cls._lifetime()
            if expires_at - now < lifetime / 2:
                expires_at = now + lifetime
                conn.execute(
                    "UPDATE sessions SET expires_at = ? WHERE id = ?",
                    (format_timestamp(expires_at), session_id),
                )
                conn.commit()
                fresh = True

            user = UserRead(
                id=row["id"], email=row["email"], name=row["name"], created_at=row["created_at"]
            )
            session = SessionRecord(
                id=row["session_id"], user_id=row["id"], expires_at=expires_at, fresh=fresh
            )
            return session, user
        finally:
            conn.close()

    @classmethod
    async def invalidate_session(cls, session_id: str) -> None:
        conn = get_connection()
        try:
            conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def invalidate_user_sessions(cls, user_id: str) -> int:
        """Delete every session of a user and return how many were removed."""
        conn = get_connection()
        try:
            cursor = conn.execute("DELETE FROM sessions WHERE user_id = ?", (user_id,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    @classmethod
    async def delete_expired_sessions(cls) -> int:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE expires_at <= ?", (format_timestamp(utcnow()),)
            )
            conn.commit()
            if cursor.rowcount:
                logger.info("Removed %s expired sessions", cursor.rowcount)
            return cursor.rowcount
        finally:
            conn.close()
