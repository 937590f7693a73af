"""
Storage layer for the admin panel.

Backends:
- MemStorage: process memory (default)
- DatabaseStorage: SQLAlchemy, selected with APP_STORAGE_BACKEND=database

The active backend is a module singleton. Tests swap it with set_storage().
"""

import logging
from typing import Optional

from .memory import MemStorage
from .storage import STATUS_FLAGS, UPDATABLE_USER_FIELDS, Storage

logger = logging.getLogger(__name__)

_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """Return the active storage backend, creating it on first use."""
    global _storage
    if _storage is None:
        from config.settings import get_settings

        settings = get_settings()
        if settings.storage_backend == "database":
            from .sql_storage import DatabaseStorage

            _storage = DatabaseStorage()
        else:
            _storage = MemStorage()
        logger.info("Storage backend initialized", extra={"backend": settings.storage_backend})
    return _storage


def set_storage(storage: Storage) -> None:
    global _storage
    _storage = storage


def reset_storage() -> None:
    """Close and forget the active backend."""
    global _storage
    if _storage is not None:
        _storage.close()
    _storage = None


__all__ = [
    "Storage",
    "MemStorage",
    "STATUS_FLAGS",
    "UPDATABLE_USER_FIELDS",
    "get_storage",
    "set_storage",
    "reset_storage",
]
