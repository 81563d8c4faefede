"""
services/countdown.py

시험 제한 시간 카운트다운.

- arm() 이후 interval 마다 1초씩 감소 (기본 1Hz, config.TIMER_TICK_SECONDS).
- 0 에 도달하면 만료 리스너를 정확히 한 번 호출하고 스스로 해제된다.
- stop() 은 여러 번 불러도 안전하며, 호출 이후에는 만료 신호가 절대 나가지 않는다.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from config import TIMER_TICK_SECONDS

logger = logging.getLogger(__name__)

ExpiryListener = Callable[[], None]


class CountdownTimer:

    def __init__(self, seconds: int, interval: float = TIMER_TICK_SECONDS):
        if seconds <= 0:
            raise ValueError(f"countdown must be positive, got {seconds}")
        self._remaining = int(seconds)
        self._interval = interval
        self._armed = False
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[ExpiryListener] = []

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def armed(self) -> bool:
        return self._armed

    def on_expire(self, listener: ExpiryListener) -> Callable[[], None]:
        """만료 리스너 등록. 구독 해제 함수를 반환."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def arm(self) -> None:
        """카운트다운 시작. 실행 중인 이벤트 루프가 필요하다."""
        if self._armed or self._remaining <= 0:
            return
        self._armed = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"타이머 시작: {self._remaining}초 (tick={self._interval}s)")

    def stop(self) -> None:
        """카운트다운 해제. 예약된 tick 은 모두 취소된다."""
        was_armed = self._armed
        self._armed = False
        self._cancel_task()
        if was_armed:
            logger.info(f"타이머 해제: 남은 시간 {self._remaining}초")

    def tick(self) -> None:
        """1 tick 진행. 해제된 상태면 아무 일도 하지 않는다 (해제가 만료보다 우선)."""
        if not self._armed:
            return
        self._remaining -= 1
        if self._remaining > 0:
            return
        self._remaining = 0
        self._armed = False
        self._cancel_task()
        logger.info("타이머 만료")
        for listener in list(self._listeners):
            listener()

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self) -> None:
        while self._armed:
            await asyncio.sleep(self._interval)
            self.tick()


def format_remaining(seconds: int) -> str:
    """남은 시간을 m:ss 형태로."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"
