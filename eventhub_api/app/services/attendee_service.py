"""
Business logic for joining and leaving events.

Joining is the one operation where two requests can race: two users
taking the last seat, or one user double-clicking "join".  ``join``
therefore runs its checks and the insert inside a single
``BEGIN IMMEDIATE`` transaction, which takes SQLite's write lock up
front so no other writer can slip in between the capacity check and
the insert.  The ``UNIQUE(user_id, event_id)`` constraint remains the
final guard against duplicates.
"""

import logging
import sqlite3
from typing import List

from ..core.db import get_connection
from ..core.errors import (
    CapacityError,
    ConflictError,
    EventNotFoundError,
    NotAttendingError,
    OwnEventJoinError,
)
from ..core.utils import format_timestamp, generate_id, utcnow
from ..schemas.attendee import AttendeeRead, EventAttendee, JoinedEvent
from ..schemas.user import UserRead

logger = logging.getLogger(__name__)


class AttendeeService:
    """Service for attendance records."""

    @classmethod
    async def join(cls, event_id: str, user: UserRead) -> AttendeeRead:
        """Add ``user`` to the attendees of an event.

        Checks run in this order and the first failure wins:

        1. the event exists (``EventNotFoundError``);
        2. the user is not its creator (``OwnEventJoinError``);
        3. the user has not joined already (``ConflictError``);
        4. the event is not full (``CapacityError``).
        """
        conn = get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            event = conn.execute(
                "SELECT id, created_by, max_attendees FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            if not event:
                raise EventNotFoundError(event_id)
            if event["created_by"] == user.id:
                raise OwnEventJoinError()

            existing = conn.execute(
                "SELECT id FROM attendees WHERE user_id = ? AND event_id = ?", (user.id, event_id)
            ).fetchone()
            if existing:
                raise ConflictError("Already joined this event")

            if event["max_attendees"] is not None:
                count = conn.execute(
                    "SELECT COUNT(*) AS total FROM attendees WHERE event_id = ?", (event_id,)
                ).fetchone()["total"]
                if count >= event["max_attendees"]:
                    raise CapacityError()

            attendee_id = generate_id("attendee")
            joined_at = format_timestamp(utcnow())
            try:
                conn.execute(
                    "INSERT INTO attendees (id, user_id, event_id, joined_at) VALUES (?, ?, ?, ?)",
                    (attendee_id, user.id, event_id, joined_at),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError("Already joined this event") from exc
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("User %s joined event %s", user.id, event_id)
        return AttendeeRead(id=attendee_id, user_id=user.id, event_id=event_id, joined_at=joined_at)

    @classmethod
    async def leave(cls, event_id: str, user: UserRead) -> None:
        """Remove the user's attendance record for an event.

        Only the attendance record is looked up: leaving a deleted event
        fails the same way as leaving one that was never joined.
        """
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM attendees WHERE user_id = ? AND event_id = ?", (user.id, event_id)
            )
            if cursor.rowcount == 0:
                raise NotAttendingError()
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s left event %s", user.id, event_id)

    @classmethod
    async def list_attendees(cls, event_id: str) -> List[EventAttendee]:
        """Attendees of an event in the order they joined."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT 1 FROM events WHERE id = ?", (event_id,)).fetchone():
                raise EventNotFoundError(event_id)
            rows = conn.execute(
                """
                SELECT a.id, a.joined_at, u.id AS user_id, u.name, u.email
                FROM attendees a JOIN users u ON u.id = a.user_id
                WHERE a.event_id = ?
                ORDER BY a.joined_at ASC, a.rowid ASC
                """,
                (event_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            EventAttendee(
                id=row["id"],
                joined_at=row["joined_at"],
                user={"id": row["user_id"], "name": row["name"], "email": row["email"]},
            )
            for row in rows
        ]

    @classmethod
    async def list_joined_events(cls, user_id: str) -> List[JoinedEvent]:
        """Events ``user_id`` attends, most recently joined first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT e.id, e.title, e.description, e.date, e.location, e.banner_url,
                       a.joined_at, u.id AS creator_id, u.name AS creator_name
                FROM attendees a
                JOIN events e ON e.id = a.event_id
                LEFT JOIN users u ON u.id = e.created_by
                WHERE a.user_id = ?
                ORDER BY a.joined_at DESC, a.rowid DESC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()
        events: List[JoinedEvent] = []
        for row in rows:
            creator = None
            if row["creator_id"] is not None:
                creator = {"id": row["creator_id"], "name": row["creator_name"]}
            events.append(
                JoinedEvent(
                    id=row["id"],
                    title=row["title"],
                    description=row["description"],
                    date=row["date"],
                    location=row["location"],
                    banner_url=row["banner_url"],
                    joined_at=row["joined_at"],
                    creator=creator,
                )
            )
        return events
