"""In-memory Store (테스트 및 단일 프로세스용)"""
from typing import Iterable, Optional

from localevents.core.exceptions import StorageFullException


class MemoryStore:
    """dict 기반 저장소

    max_entries를 지정하면 새 키 기록 시 용량 초과로 StorageFullException을
    던져 브라우저 저장소의 QuotaExceeded 상황을 재현합니다.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._data: dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        if (
            self.max_entries is not None
            and key not in self._data
            and len(self._data) >= self.max_entries
        ):
            raise StorageFullException(
                f"max_entries={self.max_entries} reached",
                details={"key": key, "entries": len(self._data)},
            )
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> Iterable[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._data)
