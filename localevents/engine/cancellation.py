"""Request Cancellation Registry - one in-flight operation per query key.

Starting a new operation for a key cancels the previous token for that key,
so a slow, superseded fetch can never overwrite fresher state.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from localevents.core.exceptions import RequestCancelledException
from localevents.core.logging import logger

T = TypeVar("T")


class CancellationToken:
    """협조적 취소 토큰

    하위 컴포넌트는 결과를 반영하기 전에 반드시 토큰을 확인해야 합니다.
    """

    def __init__(self, key: str = "") -> None:
        self.key = key
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """취소되었다면 RequestCancelledException"""
        if self._cancelled:
            raise RequestCancelledException(self.key)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """작업과 취소 신호를 경쟁시킴

        취소가 먼저 오면 작업 task를 cancel하고 RequestCancelledException을
        던집니다. 작업이 먼저 끝나도 그 사이 취소되었다면 결과를 버립니다.
        """
        self.raise_if_cancelled()

        if self._event is None:
            self._event = asyncio.Event()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if self._cancelled:
            if not work.done():
                work.cancel()
                try:
                    await work
                except asyncio.CancelledError:
                    logger.debug(f"[REGISTRY] in-flight work aborted: key={self.key}")
                except Exception as e:
                    logger.debug(f"[REGISTRY] aborted work raised: {type(e).__name__}: {e}")
            raise RequestCancelledException(self.key)

        return work.result()

    def __repr__(self) -> str:
        return f"CancellationToken(key={self.key!r}, cancelled={self._cancelled})"


class InFlightRegistry:
    """쿼리 키별 진행 중인 작업 레지스트리

    불변식: 키당 활성 토큰은 최대 1개
    """

    def __init__(self) -> None:
        self._tokens: dict[str, CancellationToken] = {}

    def begin(self, key: str) -> CancellationToken:
        """새 작업 등록 (이전 토큰은 취소 후 교체)"""
        previous = self._tokens.pop(key, None)
        if previous is not None and not previous.cancelled:
            previous.cancel()
            logger.debug(f"[REGISTRY] superseded in-flight request: key={key}")

        token = CancellationToken(key)
        self._tokens[key] = token
        return token

    def finish(self, key: str, token: CancellationToken) -> None:
        """작업 종료 (같은 토큰일 때만 제거)"""
        if self._tokens.get(key) is token:
            del self._tokens[key]

    def cancel(self, key: str) -> bool:
        token = self._tokens.pop(key, None)
        if token is None:
            return False
        token.cancel()
        return True

    def cancel_all(self) -> int:
        count = len(self._tokens)
        for token in self._tokens.values():
            token.cancel()
        self._tokens.clear()
        return count

    def is_current(self, key: str, token: CancellationToken) -> bool:
        return self._tokens.get(key) is token and not token.cancelled

    @property
    def active_count(self) -> int:
        return len(self._tokens)
