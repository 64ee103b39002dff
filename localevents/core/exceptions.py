"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class EventEngineException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 업스트림(Gemini) 관련 예외
class UpstreamException(EventEngineException):
    """업스트림 호출 예외의 기본 클래스 (tier 단위 실패)"""
    def __init__(self, message: str, error_code: str = "UPSTREAM_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "UPSTREAM_ERROR", details)


class RateLimitedException(UpstreamException):
    """쿼터 소진 (HTTP 429 / RESOURCE_EXHAUSTED)

    공유 상태(QuotaTracker)를 변경하는 유일한 예외입니다.
    """
    def __init__(self, tier: str, details: Optional[dict[str, Any]] = None):
        message = f"Upstream quota exhausted for tier '{tier}'"
        super().__init__(message, "RATE_LIMITED", details or {"tier": tier})
        self.tier = tier


class MalformedResponseException(UpstreamException):
    """응답에서 이벤트 배열을 추출할 수 없음"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Malformed upstream response: {reason}"
        super().__init__(message, "MALFORMED_RESPONSE", details or {"reason": reason})


class UpstreamUnavailableException(UpstreamException):
    """네트워크/전송 실패, 5xx, API 키 누락 등"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Upstream unavailable: {reason}"
        super().__init__(message, "UPSTREAM_UNAVAILABLE", details or {"reason": reason})


class RequestCancelledException(UpstreamException):
    """더 최신 요청에 의해 대체됨 (오류 아님, 조용히 버림)"""
    def __init__(self, key: str = "", details: Optional[dict[str, Any]] = None):
        message = f"Request superseded for key: {key}" if key else "Request superseded"
        super().__init__(message, "CANCELLED", details or {"key": key})


# 캐시 관련 예외
class CacheException(EventEngineException):
    """캐시 관련 예외"""
    def __init__(self, message: str, error_code: str = "CACHE_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CACHE_ERROR", details)


class StorageFullException(CacheException):
    """저장소 용량 초과 (eviction 후 재시도 대상)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Cache storage is full: {reason}"
        super().__init__(message, "CACHE_STORAGE_FULL", details or {"reason": reason})


class StorageUnavailableException(CacheException):
    """저장소 접근 불가 (no-op 캐시로 강등)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Cache storage unavailable: {reason}"
        super().__init__(message, "CACHE_STORAGE_UNAVAILABLE", details or {"reason": reason})


class CacheSerializationException(CacheException):
    """캐시 직렬화/역직렬화 오류"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Cache {operation} failed: {reason}"
        super().__init__(message, "CACHE_SERIALIZATION_ERROR",
                        details or {"operation": operation, "reason": reason})


# 유효성 검증 관련 예외
class ValidationException(EventEngineException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})


class InvalidQueryException(ValidationException):
    """유효하지 않은 조회 조건 (지역 누락 등)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("query", reason, details)
