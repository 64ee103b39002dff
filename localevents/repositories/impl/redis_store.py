"""Redis Store"""
from typing import Iterable, Optional

from redis import Redis
from redis.exceptions import OutOfMemoryError, RedisError

from localevents.core.exceptions import StorageFullException, StorageUnavailableException
from localevents.core.logging import logger


class RedisStore:
    """Redis 저장소

    TTL 판정은 CacheService가 엔트리의 timestamp로 직접 수행하므로
    (만료된 엔트리도 stale fallback으로 쓰기 위해) Redis EXPIRE는 쓰지 않습니다.
    """

    def __init__(self, redis_url: str, client: Optional[Redis] = None):
        try:
            self.redis_client = client or Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            self.redis_client.ping()
            logger.info("Redis connection established")
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise StorageUnavailableException(f"Redis connection failed: {e}")

    def read(self, key: str) -> Optional[str]:
        try:
            return self.redis_client.get(key)
        except RedisError as e:
            raise StorageUnavailableException(f"Redis read failed: {e}")

    def write(self, key: str, value: str) -> None:
        try:
            self.redis_client.set(key, value)
        except OutOfMemoryError as e:
            raise StorageFullException(f"Redis OOM: {e}", details={"key": key})
        except RedisError as e:
            raise StorageUnavailableException(f"Redis write failed: {e}")

    def delete(self, key: str) -> bool:
        try:
            return self.redis_client.delete(key) > 0
        except RedisError as e:
            raise StorageUnavailableException(f"Redis delete failed: {e}")

    def keys(self, prefix: str = "") -> Iterable[str]:
        try:
            return list(self.redis_client.scan_iter(match=f"{prefix}*"))
        except RedisError as e:
            raise StorageUnavailableException(f"Redis scan failed: {e}")

    def health_check(self) -> bool:
        try:
            self.redis_client.ping()
            return True
        except RedisError:
            return False
