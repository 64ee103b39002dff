"""업스트림 HTTP 전송 (curl_cffi AsyncSession 재사용)

generateContent 호출은 느리고(수 초~수십 초) 동시에 여러 개가 나갈 수 있어
프로세스당 세션 하나를 공유하고 max_clients로 동시 연결 수를 제한합니다.
전송 실패는 예외 대신 None으로 돌려주고, 분류는 호출자(GeminiEventClient)가 합니다.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

from curl_cffi.requests import AsyncSession

from localevents import __version__
from localevents.core.config import settings
from localevents.core.logging import logger, sanitize_for_log

JSON_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": f"localevents-engine/{__version__}",
}


class SharedHttpClient:
    """JSON POST 전용 공유 세션

    세션은 첫 요청 시 생성되고 close() 이후 다음 요청에서 다시 만들어집니다.
    """

    def __init__(self, max_clients: Optional[int] = None) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None
        self._max_clients = max_clients or settings.gemini_http_max_clients
        self.requests_sent = 0

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def _session_or_create(self) -> AsyncSession:
        async with self._lock:
            if self._session is None:
                self._session = AsyncSession(
                    headers=dict(JSON_HEADERS),
                    max_clients=self._max_clients,
                    trust_env=False,
                )
                logger.debug(f"[HTTP_CLIENT] session opened (max_clients={self._max_clients})")
            return self._session

    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[tuple[int, str]]:
        """JSON 본문 POST

        Returns:
            (status_code, body) 또는 전송 실패 시 None

        Raises:
            asyncio.CancelledError: 취소 토큰에 의해 작업이 중단된 경우
        """
        session = await self._session_or_create()
        started = time.perf_counter()
        self.requests_sent += 1
        try:
            response = await session.post(url, json=payload, headers=headers, timeout=timeout_s)
        except asyncio.CancelledError:
            logger.debug(f"[HTTP_CLIENT] POST aborted after {time.perf_counter() - started:.2f}s")
            raise
        except Exception as e:
            logger.info(f"[HTTP_CLIENT] POST failed: {type(e).__name__}: {sanitize_for_log(repr(e), max_length=200)}")
            return None

        status_code = getattr(response, "status_code", 0) or 0
        logger.debug(f"[HTTP_CLIENT] POST {status_code} in {time.perf_counter() - started:.2f}s")
        return status_code, getattr(response, "text", "") or ""

    async def close(self) -> None:
        async with self._lock:
            session, self._session = self._session, None
        if session is None:
            return
        try:
            await session.close()
        except Exception as e:
            logger.debug(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e}")


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
