"""
Common utilities package for the task tracker application.

``app.utils.auth`` (tokens, password hashing) depends on the settings module and
is imported directly by its callers; only logging is re-exported here because
``app.config`` itself needs it.
"""

from app.utils.logger import setup_logger

__all__ = [
    "setup_logger",
]
