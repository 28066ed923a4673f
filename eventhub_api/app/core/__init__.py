"""Configuration, database access, security and shared helpers."""
