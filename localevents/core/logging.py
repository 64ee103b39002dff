"""로깅 설정 (Security Enhanced)

패키지 전역에서 `from localevents.core.logging import logger` 로 사용합니다.
모듈별 태그([ORCHESTRATOR], [CACHE], [QUOTA], [UPSTREAM] ...)를 메시지 앞에 붙입니다.
"""
import logging
import os
import re
import sys

from localevents.core.config import settings

LOGGER_NAME = "localevents"

# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"

_PRODUCTION_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DEVELOPMENT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

# 값만 가리고 키 이름은 남김 (예: "key=abc" -> "key=***")
_SECRET_PATTERN = re.compile(
    r"(?i)\b(api[-_]?key|key|token|password|secret|authorization)(\"?\s*[=:]\s*)(\"?)[^\s&\"',;]+"
)


def _resolve_level(level_name: str) -> int:
    name = (level_name or "INFO").upper()
    if IS_PRODUCTION and name == "DEBUG":
        name = "INFO"
    return getattr(logging, name, logging.INFO)


def setup_logging() -> logging.Logger:
    """패키지 로거 초기화 (여러 번 호출해도 핸들러는 하나)"""
    logger = logging.getLogger(LOGGER_NAME)
    level = _resolve_level(settings.log_level)
    logger.setLevel(level)
    logger.propagate = False

    handler = next((h for h in logger.handlers if h.get_name() == LOGGER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(LOGGER_NAME)
        handler.setFormatter(logging.Formatter(
            fmt=_PRODUCTION_FORMAT if IS_PRODUCTION else _DEVELOPMENT_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)
    handler.setLevel(level)

    # curl_cffi 내부 로그는 경고 이상만
    logging.getLogger("curl_cffi").setLevel(logging.WARNING)
    return logger


logger = setup_logging()


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """민감 정보(API 키, 토큰 등)의 값을 가린 로깅용 문자열

    Args:
        value: 로깅할 문자열
        max_length: 최대 길이 (초과분은 "..."으로 생략)

    Returns:
        마스킹된 문자열
    """
    if not value:
        return "[empty]"

    result = _SECRET_PATTERN.sub(r"\1\2\3***", str(value))
    if len(result) > max_length:
        result = result[:max_length] + "..."
    return result
