"""
services/integrity_monitor.py

환경 신호 / 타이머 만료를 종료 사유로 변환하여 세션 컨트롤러에 전달.
첫 신호에서 종료를 요청한 뒤 즉시 모든 소스에서 구독을 해제하므로
소스가 다시 신호를 내보내도 두 번 발화하지 않는다.
"""

import logging
from typing import Callable, Dict, List, Optional

from secure_exam.models.session_state import TerminationReason
from secure_exam.services.countdown import CountdownTimer
from secure_exam.services.signals import EnvironmentSignal, SignalSource

logger = logging.getLogger(__name__)

SIGNAL_REASONS: Dict[EnvironmentSignal, TerminationReason] = {
    EnvironmentSignal.VISIBILITY_HIDDEN: TerminationReason.TAB_SWITCH,
    EnvironmentSignal.FOCUS_LOST: TerminationReason.FOCUS_LOST,
    EnvironmentSignal.UNLOAD_ATTEMPTED: TerminationReason.UNLOAD_ATTEMPTED,
}


class IntegrityMonitor:

    def __init__(self, request_termination: Callable[[TerminationReason], object]):
        self._request_termination = request_termination
        self._unsubscribers: List[Callable[[], None]] = []
        self._fired = False

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    @property
    def fired(self) -> bool:
        return self._fired

    def attach(self, signals: SignalSource, timer: Optional[CountdownTimer] = None) -> None:
        self._unsubscribers.append(signals.subscribe(self._on_signal))
        if timer is not None:
            self._unsubscribers.append(timer.on_expire(self._on_expire))

    def detach(self) -> None:
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def _on_signal(self, signal: EnvironmentSignal) -> bool:
        self._fire(SIGNAL_REASONS[signal])
        # 페이지 이탈 차단은 환경 쪽 best-effort. 여기서는 요청만 한다.
        return signal is EnvironmentSignal.UNLOAD_ATTEMPTED

    def _on_expire(self) -> None:
        self._fire(TerminationReason.TIME_EXPIRED)

    def _fire(self, reason: TerminationReason) -> None:
        if self._fired:
            logger.debug(f"이미 발화한 모니터, 신호 무시: {reason.value}")
            return
        self._fired = True
        if reason.is_violation:
            logger.warning(f"부정행위 감지: {reason.value}")
        try:
            self._request_termination(reason)
        finally:
            self.detach()
