"""
Top-level package for the EventHub API.

All functionality lives in submodules under ``app``, imported by fully
qualified names such as ``eventhub_api.app.main``.
"""

__all__ = []
