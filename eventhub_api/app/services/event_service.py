"""
Business logic for events.

``EventService`` owns the rules around event mutation:

* an event's date must lie strictly in the future when it is created
  and whenever it is changed;
* only the creator may update or delete an event or change its banner;
* ``maxAttendees`` may not be lowered below the current attendee
  count.

Deleting an event removes its attendee records through the
``ON DELETE CASCADE`` foreign key on ``attendees.event_id``.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..core.db import get_connection
from ..core.errors import EventNotFoundError, ForbiddenError, InvalidInputError
from ..core.responses import paginate, pagination_meta
from ..core.utils import format_timestamp, generate_id, is_future_date, utcnow
from ..schemas.event import EventCreate, EventRead, EventUpdate
from ..schemas.user import UserRead
from .media_service import MediaStorage, get_media_storage

logger = logging.getLogger(__name__)

EVENT_SELECT = """
    SELECT e.id, e.title, e.description, e.date, e.location, e.banner_url,
           e.max_attendees, e.created_by, e.created_at, e.updated_at,
           u.id AS creator_id, u.name AS creator_name, u.email AS creator_email,
           COUNT(a.id) AS attendee_count
    FROM events e
    LEFT JOIN users u ON u.id = e.created_by
    LEFT JOIN attendees a ON a.event_id = e.id
"""

SORT_COLUMNS = {
    "date": "e.date",
    "created": "e.created_at",
    "title": "e.title",
}

# Columns of ``events`` that an update may touch, keyed by schema field.
UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "location": "location",
    "max_attendees": "max_attendees",
}

PAST_DATE_MESSAGE = "Event date must be in the future"
BANNER_UPLOAD_ACTION = "upload banner for this event"


def row_to_event(row: sqlite3.Row) -> EventRead:
    creator = None
    if row["creator_id"] is not None:
        creator = {"id": row["creator_id"], "name": row["creator_name"], "email": row["creator_email"]}
    return EventRead(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        date=row["date"],
        location=row["location"],
        banner_url=row["banner_url"],
        max_attendees=row["max_attendees"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        creator=creator,
        attendee_count=row["attendee_count"] or 0,
    )


def fetch_event(conn: sqlite3.Connection, event_id: str) -> Optional[EventRead]:
    row = conn.execute(
        EVENT_SELECT + " WHERE e.id = ? GROUP BY e.id", (event_id,)
    ).fetchone()
    return row_to_event(row) if row else None


def load_owned_event(
    conn: sqlite3.Connection, event_id: str, actor: UserRead, action: str
) -> sqlite3.Row:
    """Fetch the raw event row and check that ``actor`` created it.

    ``action`` completes the forbidden message, e.g. ``"update this event"``.
    """
    row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
    if not row:
        raise EventNotFoundError(event_id)
    if row["created_by"] != actor.id:
        raise ForbiddenError(f"You are not authorized to {action}")
    return row


class EventService:
    """Service for creating, listing, changing and deleting events."""

    @classmethod
    async def create_event(
        cls, data: EventCreate, owner: UserRead, now: Optional[datetime] = None
    ) -> EventRead:
        """Create an event owned by ``owner``.

        Raises ``InvalidInputError`` if ``data.date`` is not strictly
        after ``now`` (default: the current time).  The banner is
        always left unset.
        """
        if not is_future_date(data.date, now):
            raise InvalidInputError(PAST_DATE_MESSAGE)
        event_id = generate_id("event")
        timestamp = format_timestamp(utcnow())
        logger.info("User %s is creating event '%s'", owner.id, data.title)
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO events (id, title, description, date, location, banner_url,
                                    max_attendees, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, NULL, ?, ?, ?, ?)
                """,
                (
                    event_id,
                    data.title,
                    data.description,
                    format_timestamp(data.date),
                    data.location,
                    data.max_attendees,
                    owner.id,
                    timestamp,
                    timestamp,
                ),
            )
            conn.commit()
            return fetch_event(conn, event_id)
        finally:
            conn.close()

    @classmethod
    async def list_events(
        cls,
        page: int = 1,
        limit: int = 10,
        sort: str = "date",
        order: str = "asc",
    ) -> Tuple[List[EventRead], Dict[str, Any]]:
        """Return one page of events and the pagination metadata.

        ``sort`` is one of ``date``, ``created`` or ``title``; unknown
        values fall back to ``date``.  ``order`` is ``asc`` or ``desc``.
        """
        sort_column = SORT_COLUMNS.get(sort, SORT_COLUMNS["date"])
        direction = "DESC" if order.lower() == "desc" else "ASC"
        limit, offset = paginate(page, limit)
        conn = get_connection()
        try:
            rows = conn.execute(
                EVENT_SELECT
                + f" GROUP BY e.id ORDER BY {sort_column} {direction}, e.rowid {direction} LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            total = conn.execute("SELECT COUNT(*) AS total FROM events").fetchone()["total"]
        finally:
            conn.close()
        return [row_to_event(row) for row in rows], pagination_meta(total, page, limit)

    @classmethod
    async def list_user_events(cls, user_id: str) -> List[EventRead]:
        """Events created by ``user_id``, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                EVENT_SELECT + " WHERE e.created_by = ? GROUP BY e.id ORDER BY e.created_at DESC, e.rowid DESC",
                (user_id,),
            ).fetchall()
            return [row_to_event(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_event(cls, event_id: str) -> EventRead:
        conn = get_connection()
        try:
            event = fetch_event(conn, event_id)
        finally:
            conn.close()
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    @classmethod
    async def update_event(
        cls,
        event_id: str,
        actor: UserRead,
        updates: EventUpdate,
        now: Optional[datetime] = None,
    ) -> EventRead:
        """Apply the fields present in ``updates`` to an event.

        Raises ``EventNotFoundError``, ``ForbiddenError`` for anyone but
        the creator, and ``InvalidInputError`` for a date that is not in
        the future or a capacity below the current attendee count.
        ``updated_at`` is refreshed even when no field changes.
        """
        changes = updates.model_dump(exclude_unset=True)
        conn = get_connection()
        try:
            # Same write lock as joins, so the capacity check sees a stable count.
            conn.execute("BEGIN IMMEDIATE")
            load_owned_event(conn, event_id, actor, "update this event")

            if "date" in changes:
                if not is_future_date(changes["date"], now):
                    raise InvalidInputError(PAST_DATE_MESSAGE)
                changes["date"] = format_timestamp(changes["date"])

            if "max_attendees" in changes:
                count = conn.execute(
                    "SELECT COUNT(*) AS total FROM attendees WHERE event_id = ?", (event_id,)
                ).fetchone()["total"]
                if changes["max_attendees"] < count:
                    raise InvalidInputError(
                        f"maxAttendees cannot be lower than the current attendee count ({count})"
                    )

            assignments = [f"{UPDATABLE_FIELDS[key]} = ?" for key in changes]
            values = list(changes.values())
            assignments.append("updated_at = ?")
            values.append(format_timestamp(utcnow()))
            values.append(event_id)
            conn.execute(f"UPDATE events SET {', '.join(assignments)} WHERE id = ?", tuple(values))
            conn.commit()
            logger.info("User %s updated event %s (%s)", actor.id, event_id, ", ".join(changes) or "no fields")
            return fetch_event(conn, event_id)
        finally:
            conn.close()

    @classmethod
    async def delete_event(
        cls, event_id: str, actor: UserRead, storage: Optional[MediaStorage] = None
    ) -> None:
        """Delete an event created by ``actor``.

        Attendee records go with it through the cascading foreign key.
        A stored banner is removed afterwards; failing to remove it is
        logged and does not fail the deletion.
        """
        conn = get_connection()
        try:
            row = load_owned_event(conn, event_id, actor, "delete this event")
            conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s deleted event %s", actor.id, event_id)
        (storage or get_media_storage()).discard_url(row["banner_url"])

    # ------------------------------------------------------------------
    # Banner
    # ------------------------------------------------------------------
    @classmethod
    async def ensure_owner(cls, event_id: str, actor: UserRead, action: str) -> None:
        """Raise ``EventNotFoundError`` or ``ForbiddenError`` unless ``actor`` created the event."""
        conn = get_connection()
        try:
            load_owned_event(conn, event_id, actor, action)
        finally:
            conn.close()

    @classmethod
    async def replace_banner(
        cls,
        event_id: str,
        actor: UserRead,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        storage: Optional[MediaStorage] = None,
    ) -> Tuple[EventRead, str]:
        """Store a new banner image for an event and return ``(event, url)``.

        The upload is validated and stored before the previous banner,
        if any, is deleted; a failure to delete the old one is only
        logged.  The object is written before the event row is updated
        and the two steps are not atomic.
        """
        storage = storage or get_media_storage()
        conn = get_connection()
        try:
            row = load_owned_event(conn, event_id, actor, BANNER_UPLOAD_ACTION)
            stored = storage.upload_image(data, filename, content_type, folder="events")
            storage.discard_url(row["banner_url"])
            conn.execute(
                "UPDATE events SET banner_url = ?, updated_at = ? WHERE id = ?",
                (stored.url, format_timestamp(utcnow()), event_id),
            )
            conn.commit()
            logger.info("Stored banner %s for event %s", stored.key, event_id)
            return fetch_event(conn, event_id), stored.url
        finally:
            conn.close()

    @classmethod
    async def remove_banner(
        cls, event_id: str, actor: UserRead, storage: Optional[MediaStorage] = None
    ) -> EventRead:
        storage = storage or get_media_storage()
        conn = get_connection()
        try:
            row = load_owned_event(conn, event_id, actor, "delete banner for this event")
            if not row["banner_url"]:
                raise InvalidInputError("No banner to delete")
            key = storage.key_from_url(row["banner_url"])
            if key:
                storage.delete(key)
            conn.execute(
                "UPDATE events SET banner_url = NULL, updated_at = ? WHERE id = ?",
                (format_timestamp(utcnow()), event_id),
            )
            conn.commit()
            return fetch_event(conn, event_id)
        finally:
            conn.close()
