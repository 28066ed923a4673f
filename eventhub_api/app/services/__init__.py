"""
Service layer.

Each service encapsulates the business logic of one domain (users,
sessions, events, attendees, media) on top of SQLite and the media
store.  API handlers call services and never touch the database
directly; services report failures by raising the exceptions from
``core.errors``.

Services are imported from their modules, not from this package:
``core.security`` depends on ``session_service`` and ``user_service``
depends on ``core.security``.
"""
