"""Repositories implementation package."""

from .file_store import FileStore
from .memory_store import MemoryStore
from .null_store import NullStore
from .redis_store import RedisStore

__all__ = ["FileStore", "MemoryStore", "NullStore", "RedisStore"]
