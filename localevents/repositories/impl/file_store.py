"""파일 기반 Store - 단일 JSON 파일에 key-value 영속

- 기록은 임시 파일 작성 후 os.replace로 교체 (원자적)
- max_bytes 초과 시 StorageFullException
"""
import json
import os
import tempfile
import threading
from typing import Iterable, Optional

from localevents.core.exceptions import StorageFullException, StorageUnavailableException
from localevents.core.logging import logger


class FileStore:
    """디스크 JSON 파일 저장소"""

    def __init__(self, path: str, max_bytes: Optional[int] = None):
        self.path = path
        self.max_bytes = max_bytes
        self._lock = threading.Lock()
        self._data: Optional[dict[str, str]] = None

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        if not os.path.exists(self.path):
            self._data = {}
            return self._data
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            # 깨진 파일은 버리고 새로 시작 (캐시이므로 손실 허용)
            logger.warning(f"[FILE_STORE] corrupt cache file discarded: {self.path}: {e}")
            loaded = {}
        except OSError as e:
            raise StorageUnavailableException(f"cannot read {self.path}: {e}")
        self._data = {str(k): str(v) for k, v in loaded.items()} if isinstance(loaded, dict) else {}
        return self._data

    def _flush(self, data: dict[str, str]) -> None:
        payload = json.dumps(data, ensure_ascii=False)
        if self.max_bytes is not None and len(payload.encode("utf-8")) > self.max_bytes:
            raise StorageFullException(
                f"file would exceed max_bytes={self.max_bytes}",
                details={"path": self.path},
            )

        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".localevents-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageUnavailableException(f"cannot write {self.path}: {e}")

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            current = self._load()
            updated = dict(current)
            updated[key] = value
            self._flush(updated)
            # flush 성공 후에만 메모리 상태 교체
            self._data = updated

    def delete(self, key: str) -> bool:
        with self._lock:
            current = self._load()
            if key not in current:
                return False
            updated = {k: v for k, v in current.items() if k != key}
            self._flush(updated)
            self._data = updated
            return True

    def keys(self, prefix: str = "") -> Iterable[str]:
        with self._lock:
            return [k for k in self._load() if k.startswith(prefix)]

    def health_check(self) -> bool:
        try:
            with self._lock:
                self._load()
            return True
        except StorageUnavailableException:
            return False
