"""
HTTP API package.

``router`` aggregates the per-domain routers from ``endpoints`` and is
mounted under ``/api`` by ``main.create_app``.
"""
