"""캐시 저장소 백엔드 - export only."""

from .base import Store
from .impl import FileStore, MemoryStore, NullStore, RedisStore

__all__ = ["Store", "FileStore", "MemoryStore", "NullStore", "RedisStore"]
