"""Store 인터페이스 - 캐시 백엔드가 구현해야 할 프로토콜"""

from typing import Iterable, Optional, Protocol


class Store(Protocol):
    """문자열 key-value 저장소

    - 용량 초과 시 StorageFullException
    - 그 외 접근 불가 시 StorageUnavailableException
    - write는 호출자 입장에서 원자적이어야 합니다 (부분 기록 노출 금지)
    """

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...

    def keys(self, prefix: str = "") -> Iterable[str]:
        ...

    def health_check(self) -> bool:
        ...
