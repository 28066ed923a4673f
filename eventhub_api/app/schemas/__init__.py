"""
Pydantic schema definitions for API payloads.

Each domain (users, events, attendees) defines its own models for
request and response bodies.  Schemas are separate from the SQLite
rows to decouple the API representation from persistence.  All
models speak camelCase on the wire (``maxAttendees``, ``bannerUrl``)
while keeping snake_case attribute names in Python.
"""
