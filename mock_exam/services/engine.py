"""
services/engine.py

모의고사 세션 상태 기계.

  configuring → in_progress → submitted ⇄ reviewing
       ↑                          │
       └──────── reset ───────────┘

- start()  : 이용권 확인 → 문제 묶음 조회 → 타이머/네비게이션 초기화
- answer() / toggle_flag() / navigate_to() / tick() : 진행 중에만 허용
- submit() : 타이머 0초와 수동 제출이 같은 함수를 호출하며, 한 번만 실행된다
- review   : 제출 후 읽기 전용. in_progress로 돌아가는 전이는 없다
- reset()  : 상태와 결과를 모두 버리고 configuring으로

모든 변경은 이벤트 루프에서 하나씩 끝까지 처리되므로 잠금이 필요 없다.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from config import TICK_INTERVAL_SECONDS
from mock_exam.errors import (
    InvalidTransitionError,
    QuestionBankUnavailableError,
    UpgradeRequiredError,
)
from mock_exam.models.question_model import Question, answer_for
from mock_exam.models.session_state import (
    ExamPhase,
    ExamResult,
    Section,
    SessionConfig,
    SessionState,
)
from mock_exam.services.collaborators import MOCK_EXAM_FEATURE, Collaborators
from mock_exam.services.exam_service import score_session
from mock_exam.services.navigation import NavigationController
from mock_exam.services.persistence import ResultPublisher
from mock_exam.services.review import ReviewKey, ReviewModeController
from mock_exam.services.sections import partition_sections
from mock_exam.services.timer import TimerController

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    ExamPhase.CONFIGURING: {ExamPhase.IN_PROGRESS},
    ExamPhase.IN_PROGRESS: {ExamPhase.SUBMITTED},
    ExamPhase.SUBMITTED: {ExamPhase.REVIEWING, ExamPhase.CONFIGURING},
    ExamPhase.REVIEWING: {ExamPhase.SUBMITTED},
}


class ExamEngine:
    """
    세션 하나를 소유하는 시험 엔진.

    Args:
        collaborators: 문제 은행, 이용권, 결과 저장 서비스 묶음.
        auto_tick:     True면 시작 시 1초 틱을 이벤트 루프에 등록한다.
                       False면 호출자가 tick()을 직접 호출한다.
        clock:         문항별 시간 측정에 쓰는 단조 시계.
        interval:      자동 틱 간격 (초).
    """

    def __init__(
        self,
        collaborators: Collaborators,
        auto_tick: bool = True,
        clock: Callable[[], float] = time.monotonic,
        interval: float = TICK_INTERVAL_SECONDS,
    ):
        self.collaborators = collaborators
        self.auto_tick = auto_tick
        self._clock = clock
        self._interval = interval
        self._starting = False
        self._publisher = ResultPublisher(collaborators)

        self.phase = ExamPhase.CONFIGURING
        self.config: Optional[SessionConfig] = None
        self.state: Optional[SessionState] = None
        self.sections: List[Section] = []
        self.result: Optional[ExamResult] = None
        self.timer: Optional[TimerController] = None
        self.navigation: Optional[NavigationController] = None
        self.review: Optional[ReviewModeController] = None

    # ── 전이 ──────────────────────────────────────────────────────────────

    def _transition(self, target: ExamPhase) -> None:
        if target not in _TRANSITIONS[self.phase]:
            raise InvalidTransitionError(f"{self.phase.value} → {target.value} 전이는 허용되지 않습니다.")
        logger.debug(f"단계 전이: {self.phase.value} → {target.value}")
        self.phase = target

    def _require(self, phase: ExamPhase, action: str) -> None:
        if self.phase is not phase:
            raise InvalidTransitionError(f"'{action}'은(는) {phase.value} 단계에서만 가능합니다 (현재: {self.phase.value}).")

    async def start(self, config: SessionConfig) -> SessionState:
        """
        configuring → in_progress.

        Raises:
            InvalidTransitionError:       configuring이 아니거나 다른 start()가 진행 중.
            UpgradeRequiredError:         이용권 거부. 단계는 configuring 유지.
            QuestionBankUnavailableError: 이용권 확인/문제 조회 실패 또는 0문항.
        """
        self._require(ExamPhase.CONFIGURING, "시험 시작")
        if self._starting:
            raise InvalidTransitionError("이미 시험을 시작하는 중입니다.")
        self._starting = True
        try:
            questions = await self._load_questions(config)
        finally:
            self._starting = False

        state = SessionState.start(questions, config.duration_seconds)
        sections = partition_sections(len(questions), config.question_count)
        navigation = NavigationController(state, sections)
        timer = TimerController(state, on_expire=self.submit, clock=self._clock, interval=self._interval)

        self._transition(ExamPhase.IN_PROGRESS)
        self.config = config
        self.state = state
        self.sections = sections
        self.navigation = navigation
        self.timer = timer
        timer.start(auto_tick=self.auto_tick)

        logger.info(
            f"시험 시작: paper={config.paper_code}, tier={config.length_tier.value}, "
            f"{len(questions)}문항, {config.duration_seconds}초"
        )
        return state

    async def _load_questions(self, config: SessionConfig) -> List[Question]:
        """이용권 확인 후 문제 묶음을 받아온다. 요청 수를 넘는 문항은 버린다."""
        tier = config.length_tier.value

        try:
            entitlement = await self.collaborators.entitlement.check(MOCK_EXAM_FEATURE, tier)
        except Exception as e:
            logger.error(f"이용권 확인 실패: {e}", exc_info=True)
            raise QuestionBankUnavailableError("이용 가능 여부를 확인하지 못했습니다. 잠시 후 다시 시도해 주세요.") from e
        if not entitlement.allowed:
            logger.info(f"이용권 거부 (tier={tier}, remaining={entitlement.remaining})")
            raise UpgradeRequiredError(tier, entitlement.remaining)

        try:
            questions = await self.collaborators.question_bank.fetch_questions(
                config.paper_code, config.question_count
            )
        except Exception as e:
            logger.error(f"문제 조회 실패 (paper={config.paper_code}): {e}", exc_info=True)
            raise QuestionBankUnavailableError("문제를 불러오지 못했습니다. 잠시 후 다시 시도해 주세요.") from e

        questions = list(questions or [])[: config.question_count]
        if not questions:
            raise QuestionBankUnavailableError(f"'{config.paper_code}' 과목의 문제가 없습니다.")
        if len(questions) < config.question_count:
            logger.warning(
                f"요청 {config.question_count}문항 중 {len(questions)}문항만 받아 짧은 시험으로 진행합니다."
            )
        return questions

    # ── 진행 중 조작 ──────────────────────────────────────────────────────

    def answer(self, index: int, value: Any):
        """
        답안 저장. value는 원시 값 또는 답안 모델이며 None이면 답안을 지운다.

        Returns:
            저장된 답안 모델 (또는 None).
        """
        self._require(ExamPhase.IN_PROGRESS, "답안 저장")
        self.navigation.check_index(index)
        question = self.state.questions[index]
        if value is not None and hasattr(value, "kind"):
            value = value.model_dump()
        stored = answer_for(question, value)
        self.state.answers[index] = stored
        return stored

    def toggle_flag(self, index: int) -> bool:
        self._require(ExamPhase.IN_PROGRESS, "플래그 표시")
        return self.navigation.toggle_flag(index)

    def navigate_to(self, index: int) -> int:
        """현재 문항의 체류 시간을 기록한 뒤 이동한다."""
        self._require(ExamPhase.IN_PROGRESS, "문제 이동")
        self.navigation.check_index(index)
        self.timer.record_elapsed()
        self.navigation.move_to(index)
        return index

    def next_question(self) -> int:
        self._require(ExamPhase.IN_PROGRESS, "다음 문제")
        nxt = self.navigation.next_index()
        return self.navigate_to(nxt) if nxt is not None else self.state.current_index

    def previous_question(self) -> int:
        self._require(ExamPhase.IN_PROGRESS, "이전 문제")
        prev = self.navigation.previous_index()
        return self.navigate_to(prev) if prev is not None else self.state.current_index

    def tick(self) -> None:
        """진행 중이 아니면 무시한다 (취소 직전에 도착한 틱 포함)."""
        if self.phase is not ExamPhase.IN_PROGRESS:
            return
        self.timer.tick()

    # ── 제출 ──────────────────────────────────────────────────────────────

    def submit(self) -> ExamResult:
        """
        in_progress → submitted. 한 번만 실행된다.

        이미 제출된 뒤(submitted / reviewing)의 호출은 기존 결과를 그대로 돌려준다.
        """
        if self.phase in (ExamPhase.SUBMITTED, ExamPhase.REVIEWING):
            logger.debug("이미 제출된 시험입니다. 중복 제출 무시.")
            return self.result
        self._require(ExamPhase.IN_PROGRESS, "제출")

        self.timer.stop()
        self.timer.record_elapsed()
        result = score_session(self.state, self.sections)
        self.result = result
        self._transition(ExamPhase.SUBMITTED)

        logger.info(
            f"시험 제출: {result.correct_count}/{result.total_questions} "
            f"({result.accuracy_pct:.1f}%), {'합격' if result.passed else '불합격'}, "
            f"미응답 {result.unanswered_count}"
        )
        self._publisher.publish(self.state.questions, result)
        return result

    async def wait_for_persistence(self) -> None:
        await self._publisher.drain()

    # ── 리뷰 ──────────────────────────────────────────────────────────────

    def enter_review(self, incorrect_only: bool = False) -> ReviewModeController:
        self._transition(ExamPhase.REVIEWING)
        if self.review is None:
            self.review = ReviewModeController(
                self.state.questions, self.state.answers, sorted(self.state.flagged), self.result
            )
        self.review.set_incorrect_only(incorrect_only)
        return self.review

    def exit_review(self) -> None:
        """리뷰 종료. 오답만 보기는 항상 해제된다."""
        self._require(ExamPhase.REVIEWING, "리뷰 종료")
        self.review.reset()
        self._transition(ExamPhase.SUBMITTED)

    def handle_key(self, key: str) -> Optional[str]:
        """
        키 입력 처리. 진행 중/리뷰 중에만 구독되며 그 외 단계에서는 무시한다.

          ArrowLeft  : 이전 문항
          ArrowRight : 다음 문항
          Escape     : 리뷰 종료 (리뷰 중에만)

        Returns:
            처리한 동작 이름, 무시했으면 None.
        """
        try:
            key = ReviewKey(key)
        except ValueError:
            return None

        if self.phase is ExamPhase.IN_PROGRESS:
            if key is ReviewKey.ARROW_LEFT:
                self.previous_question()
                return "previous"
            if key is ReviewKey.ARROW_RIGHT:
                self.next_question()
                return "next"
            return None

        if self.phase is ExamPhase.REVIEWING:
            if key is ReviewKey.ARROW_LEFT:
                self.review.previous()
                return "previous"
            if key is ReviewKey.ARROW_RIGHT:
                self.review.next()
                return "next"
            self.exit_review()
            return "exit"
        return None

    # ── 새 시험 ───────────────────────────────────────────────────────────

    def reset(self) -> None:
        """'다른 시험 보기'. 이전 상태와 결과를 모두 버린다."""
        if self.phase is ExamPhase.REVIEWING:
            self.exit_review()
        self._transition(ExamPhase.CONFIGURING)
        self.config = None
        self.state = None
        self.sections = []
        self.result = None
        self.timer = None
        self.navigation = None
        self.review = None

    def shutdown(self) -> None:
        """세션 만료 시 틱을 취소한다. 진행 중이던 시험은 제출하지 않는다."""
        if self.timer is not None:
            self.timer.stop()

    # ── 조회 ──────────────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"phase": self.phase.value}
        if self.state is None:
            return data

        nav = self.navigation
        data.update(
            {
                "paper_code": self.config.paper_code,
                "length_tier": self.config.length_tier.value,
                "total": self.state.question_count,
                "current_index": self.state.current_index,
                "time_remaining_seconds": self.state.time_remaining_seconds,
                "time_remaining": self.timer.formatted_remaining(),
                "low_time": self.timer.is_low_time,
                "answered_count": nav.answered_count(),
                "progress_percent": nav.progress_percent(),
                "flagged": sorted(self.state.flagged),
                "statuses": [nav.status_of(i).value for i in range(self.state.question_count)],
                "sections": [
                    {"name": s.name, "start_index": s.start_index, "end_index": s.end_index,
                     **nav.section_stats(s).model_dump()}
                    for s in self.sections
                ],
            }
        )
        if self.review is not None and self.phase is ExamPhase.REVIEWING:
            data["review"] = {
                "incorrect_only": self.review.incorrect_only,
                "position": self.review.position,
                "count": len(self.review.working_list),
                "status": self.review.status.value,
            }
        return data
