"""
Content Storage Package

Relational content store, schema bootstrap and the resilient paginated reader.
"""

from src.storage.content_store import ContentStore
from src.storage.database import get_engine, init_db
from src.storage.errors import InvalidProvenanceError, PaginationError, StoreWriteError
from src.storage.pagination import fetch_all_paginated

__all__ = [
    "ContentStore",
    "get_engine",
    "init_db",
    "InvalidProvenanceError",
    "PaginationError",
    "StoreWriteError",
    "fetch_all_paginated",
]
