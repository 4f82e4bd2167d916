"""
Storage selection.

Exactly one backend is active per process, chosen by ``STORAGE_BACKEND``.
Route handlers depend on ``get_storage``; tests override that dependency.
"""
from contextlib import closing
from functools import lru_cache
from typing import Iterator

from paperbank.core.config import settings
from paperbank.core.database import get_db
from paperbank.storage.base import Storage
from paperbank.storage.memory import MemoryStorage
from paperbank.storage.sql import SqlStorage

__all__ = ["Storage", "MemoryStorage", "SqlStorage", "get_storage", "get_memory_storage"]


@lru_cache()
def get_memory_storage() -> MemoryStorage:
    return MemoryStorage()


def get_storage() -> Iterator[Storage]:
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_storage()
        return
    with closing(get_db()) as sessions:
        yield SqlStorage(next(sessions))
