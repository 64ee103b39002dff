"""리소스 파일(YAML) 로더 유틸리티"""
import os
import yaml
from typing import Any, Dict
from functools import lru_cache

from localevents.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """패키지 기준 리소스 절대 경로 반환"""
    # localevents/utils/resource_loader.py -> localevents/utils -> localevents
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱

    절대 경로가 주어지면 그대로 사용합니다.
    """
    path = relative_path if os.path.isabs(relative_path) else get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}

    return data if isinstance(data, dict) else {}
