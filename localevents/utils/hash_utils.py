"""해싱 유틸리티"""
import hashlib
import re


def hash_string(text: str) -> str:
    """
    문자열을 SHA-256 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        SHA-256 hex 문자열 (64자)
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def slugify(text: str) -> str:
    """
    ID 접두어용 슬러그 생성

    예: "Oklahoma City" -> "oklahoma-city"
    """
    if not text:
        return "unknown"
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "unknown"
