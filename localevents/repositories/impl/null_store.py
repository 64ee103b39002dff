"""No-op Store - 저장소를 쓸 수 없을 때의 강등 대상"""
from typing import Iterable, Optional


class NullStore:
    """모든 read는 miss, 모든 write는 버림"""

    def read(self, key: str) -> Optional[str]:
        return None

    def write(self, key: str, value: str) -> None:
        return None

    def delete(self, key: str) -> bool:
        return False

    def keys(self, prefix: str = "") -> Iterable[str]:
        return []

    def health_check(self) -> bool:
        return False
