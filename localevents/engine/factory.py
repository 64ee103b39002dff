"""Engine 조립 - 설정으로부터 저장소/캐시/업스트림/seed를 구성"""

from typing import Optional

from localevents.core.config import Settings, settings as default_settings
from localevents.core.exceptions import StorageUnavailableException
from localevents.core.logging import logger
from localevents.providers.seed_provider import load_seed_provider
from localevents.repositories.base import Store
from localevents.repositories.impl import FileStore, MemoryStore, NullStore, RedisStore
from localevents.services.impl.cache_service import CacheService
from localevents.upstream.gemini_client import GeminiEventClient

from .orchestrator import EventOrchestrator
from .strategy import TierStrategy


def create_store(config: Settings) -> Store:
    """cache_backend 설정에 맞는 저장소 생성

    저장소를 열 수 없으면 NullStore로 강등합니다 (캐시 없이 동작).
    """
    backend = config.cache_backend
    try:
        if backend == "memory":
            return MemoryStore(max_entries=config.cache_memory_max_entries)
        if backend == "file":
            return FileStore(config.cache_file_path, max_bytes=config.cache_file_max_bytes)
        if backend == "redis":
            return RedisStore(config.redis_url)
    except StorageUnavailableException as e:
        logger.warning(f"Cache backend '{backend}' unavailable, running without cache: {e}")
    return NullStore()


def create_engine(
    config: Optional[Settings] = None,
    store: Optional[Store] = None,
    upstream_client=None,
) -> EventOrchestrator:
    """EventOrchestrator 생성

    Args:
        config: 설정 (기본값: 전역 settings)
        store: 저장소 주입 (테스트용)
        upstream_client: 업스트림 어댑터 주입 (테스트용)
    """
    config = config or default_settings

    cache_service = CacheService(
        store if store is not None else create_store(config),
        prefix=config.cache_prefix,
        ttl_global=config.cache_ttl_global,
        ttl_default=config.cache_ttl_default,
        ttl_filtered=config.cache_ttl_filtered,
    )
    cache_service.purge_legacy(config.cache_legacy_prefixes)

    return EventOrchestrator(
        cache_service=cache_service,
        upstream_client=upstream_client or GeminiEventClient(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            base_url=config.gemini_base_url,
            timeout_s=config.gemini_request_timeout_s,
        ),
        seed_provider=load_seed_provider(config.seed_resource),
        strategy=TierStrategy(
            grounded_backoff_s=config.quota_grounded_backoff_s,
            base_backoff_s=config.quota_base_backoff_s,
        ),
        merge_seed=config.merge_seed_on_first_page,
        events_per_page=config.events_per_page,
    )
