"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 업스트림 (Gemini generateContent)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_request_timeout_s: float = 45.0
    gemini_http_max_clients: int = 10
    events_per_page: int = 10

    # 캐시 저장소
    # NOTE: prefix 버전을 올리면 이전 스키마의 엔트리는 전부 무효화됩니다.
    cache_prefix: str = "localevents:v3:"
    cache_legacy_prefixes: list[str] = ["localevents:v1:", "localevents:v2:"]
    cache_backend: str = "memory"  # memory | file | redis | none
    cache_file_path: str = ".cache/localevents.json"
    cache_file_max_bytes: int = 5 * 1024 * 1024
    cache_memory_max_entries: int = 500
    redis_url: str = ""

    # TTL (초) - 전역(All) 쿼리는 길게, 키워드/날짜로 좁힌 쿼리는 짧게
    cache_ttl_global: int = 6 * 3600
    cache_ttl_default: int = 3600
    cache_ttl_filtered: int = 1800

    # 쿼터 소진 시 backoff 구간 (초)
    quota_grounded_backoff_s: float = 60.0
    quota_base_backoff_s: float = 300.0

    # 1페이지 결과에 seed 데이터를 이어붙일지 여부
    merge_seed_on_first_page: bool = True
    seed_resource: str = "seed_events.yaml"

    # API
    api_title: str = "Local Events Engine"
    api_version: str = "1.0.0"
    api_description: str = "Cache-first event discovery with grounded → generative fallback."

    # 로깅
    log_level: str = "INFO"

    @field_validator("cache_ttl_global", "cache_ttl_default", "cache_ttl_filtered")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache ttl must be positive")
        return v

    @field_validator("quota_grounded_backoff_s", "quota_base_backoff_s")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("quota backoff must be positive")
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in {"memory", "file", "redis", "none"}:
            raise ValueError(f"Unsupported cache_backend: {v}")
        return v

    @field_validator("cache_prefix")
    @classmethod
    def validate_cache_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError("cache_prefix must not be empty")
        return v

    @field_validator("events_per_page", "gemini_http_max_clients")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
