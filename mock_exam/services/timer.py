"""
services/timer.py

시험 카운트다운과 문항별 체류 시간 장부.

- Ticker: asyncio 이벤트 루프 위에서 1초마다 콜백을 호출하는 반복 작업.
  CancellationToken으로 취소하면 이후 콜백은 절대 호출되지 않는다.
- TimerController: 남은 시간 감소, 0초 도달 시 자동 제출 1회 호출,
  이동/제출 시점에 현재 문항의 체류 시간을 누적한다.

문항별 시간은 이동·제출 경계에서만 기록하는 근사치(best-effort)이므로
합계가 (제한 시간 − 남은 시간)과 정확히 일치하지 않을 수 있다.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from config import LOW_TIME_WARNING_SECONDS, TICK_INTERVAL_SECONDS
from mock_exam.models.session_state import SessionState

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class Ticker:
    """interval초마다 callback을 호출한다. start()는 실행 중인 이벤트 루프가 필요하다."""

    def __init__(self, callback: Callable[[], None], interval: float = TICK_INTERVAL_SECONDS):
        self._callback = callback
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.token = CancellationToken()

    @property
    def active(self) -> bool:
        return self._task is not None and not self.token.cancelled

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self.token.cancelled:
            await asyncio.sleep(self._interval)
            if self.token.cancelled:
                break
            try:
                self._callback()
            except Exception:
                logger.error("타이머 틱 처리 중 오류", exc_info=True)

    def cancel(self) -> None:
        """취소 후에는 재시작하지 않는다. 새 시험은 새 Ticker를 만든다."""
        self.token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()


def format_remaining(seconds: int) -> str:
    """남은 시간을 H:MM:SS 형식으로."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


class TimerController:
    """
    SessionState의 time_remaining_seconds / time_per_question을 관리한다.

    Args:
        state:     진행 중인 SessionState.
        on_expire: 남은 시간이 0이 되었을 때 한 번 호출할 콜백 (자동 제출).
        clock:     단조 증가 시계 (초 단위, 테스트에서 교체 가능).
        interval:  틱 간격 (초).
    """

    def __init__(
        self,
        state: SessionState,
        on_expire: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
        interval: float = TICK_INTERVAL_SECONDS,
    ):
        self.state = state
        self._on_expire = on_expire
        self._clock = clock
        self._interval = interval
        self._ticker: Optional[Ticker] = None
        self._expired = False
        self.last_event_timestamp = clock()

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.active

    def start(self, auto_tick: bool = True) -> None:
        self.last_event_timestamp = self._clock()
        if auto_tick:
            self._ticker = Ticker(self.tick, self._interval)
            self._ticker.start()

    def stop(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()

    def tick(self) -> None:
        """1초 경과 처리. 0초에 도달하면 틱을 멈추고 on_expire를 정확히 한 번 호출."""
        if self._expired:
            return
        state = self.state
        state.time_remaining_seconds = max(0, state.time_remaining_seconds - 1)
        if state.time_remaining_seconds == 0:
            self._expired = True
            self.stop()
            logger.info("시험 시간이 종료되어 자동 제출합니다.")
            self._on_expire()

    def record_elapsed(self) -> int:
        """
        마지막 이벤트 이후 경과 시간을 현재 문항에 누적하고 기준 시각을 갱신한다.

        Returns:
            이번에 누적한 밀리초.
        """
        now = self._clock()
        elapsed_ms = max(0, int(round((now - self.last_event_timestamp) * 1000)))
        self.state.time_per_question[self.state.current_index] += elapsed_ms
        self.last_event_timestamp = now
        return elapsed_ms

    @property
    def elapsed_seconds(self) -> int:
        return max(0, self.state.duration_seconds - self.state.time_remaining_seconds)

    @property
    def is_low_time(self) -> bool:
        return self.state.time_remaining_seconds < LOW_TIME_WARNING_SECONDS

    def formatted_remaining(self) -> str:
        return format_remaining(self.state.time_remaining_seconds)
