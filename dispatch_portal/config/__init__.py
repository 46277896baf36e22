"""
Configuration package.
"""

from .database import create_engine, get_async_session_factory, get_db_session, get_session_factory
from .logging import configure_logging, get_logger
from .settings import Settings, settings

__all__ = [
    "settings",
    "Settings",
    # Database
    "create_engine",
    "get_async_session_factory",
    "get_session_factory",
    "get_db_session",
    # Logging
    "configure_logging",
    "get_logger",
]
