"""
services/signals.py

실행 환경(브라우저 탭, 터미널, 원격 데스크톱 등)에서 관측되는 이벤트 소스.
로직 없음 — 구독자에게 이름 붙은 신호를 전달하고, 구독 해제를 지원할 뿐이다.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class EnvironmentSignal(str, Enum):
    VISIBILITY_HIDDEN = "visibility-hidden"
    FOCUS_LOST = "focus-lost"
    UNLOAD_ATTEMPTED = "unload-attempted"


# 반환값 True = 환경 쪽 기본 동작(페이지 이탈 등)을 막아 달라는 요청
SignalListener = Callable[[EnvironmentSignal], Optional[bool]]


class SignalSource:
    """구독 가능한 환경 신호 발행자."""

    def __init__(self):
        self._listeners: List[SignalListener] = []

    def subscribe(self, listener: SignalListener) -> Callable[[], None]:
        """리스너 등록. 호출하면 구독이 해제되는 함수를 반환 (중복 호출 안전)."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, signal: EnvironmentSignal) -> bool:
        """
        신호를 현재 구독자 전원에게 전달.

        전달 도중 구독 해제가 일어나도 이번 전달 대상은 호출 시점의 목록으로 고정.

        Returns:
            구독자 중 하나라도 기본 동작 차단을 요청했으면 True.
        """
        listeners = list(self._listeners)
        if not listeners:
            logger.debug(f"구독자 없는 신호 무시: {signal.value}")
            return False
        prevent_default = False
        for listener in listeners:
            if listener(signal):
                prevent_default = True
        return prevent_default
