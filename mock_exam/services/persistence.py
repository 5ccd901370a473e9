"""
services/persistence.py

제출 후 결과 저장 (fire-and-forget).

화면에는 이미 계산된 ExamResult를 즉시 보여주고, 저장 작업은 이벤트 루프의
백그라운드 태스크로 돌린다. 협력 서비스 하나가 실패해도 로그만 남기고
나머지 저장은 계속하며, 결과는 절대 되돌리지 않는다.
"""

import asyncio
import logging
from typing import Awaitable, List, Sequence, Set

from mock_exam.models.question_model import Question
from mock_exam.models.session_state import ExamResult
from mock_exam.services.collaborators import (
    Collaborators,
    RawLogEntry,
    ReviewRecord,
    SessionLogPayload,
    TopicPerformanceRecord,
)

logger = logging.getLogger(__name__)


def build_session_log(questions: Sequence[Question], result: ExamResult) -> SessionLogPayload:
    raw_log = tuple(
        RawLogEntry(
            question_id=q.id,
            unit_code=q.unit_code,
            difficulty=q.difficulty,
            correct=result.outcomes[i],
            time_spent_seconds=result.time_per_question[i] / 1000,
        )
        for i, q in enumerate(questions)
    )
    return SessionLogPayload(
        total_questions=result.total_questions,
        correct_answers=result.correct_count,
        raw_log=raw_log,
    )


def build_review_batch(questions: Sequence[Question], result: ExamResult) -> List[ReviewRecord]:
    return [
        ReviewRecord(question_id=q.id, is_correct=result.outcomes[i])
        for i, q in enumerate(questions)
    ]


def build_topic_batch(questions: Sequence[Question], result: ExamResult) -> List[TopicPerformanceRecord]:
    """주제명이 없는 문항은 추적하지 않는다."""
    return [
        TopicPerformanceRecord(
            paper_code=q.paper_code,
            unit_code=q.unit_code,
            topic_name=q.topic_name,
            is_correct=result.outcomes[i],
        )
        for i, q in enumerate(questions)
        if q.topic_name
    ]


class ResultPublisher:
    def __init__(self, collaborators: Collaborators):
        self._collaborators = collaborators
        self._pending: Set[asyncio.Task] = set()

    def publish(self, questions: Sequence[Question], result: ExamResult) -> None:
        """저장 태스크를 예약만 하고 바로 반환한다."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("실행 중인 이벤트 루프가 없어 결과 저장을 건너뜁니다.")
            return
        task = loop.create_task(self._publish(list(questions), result))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """예약된 저장 작업이 모두 끝날 때까지 기다린다 (종료 / 테스트용)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _publish(self, questions: List[Question], result: ExamResult) -> None:
        c = self._collaborators
        await self._safely("session log", c.session_log.log_session(build_session_log(questions, result)))
        await self._safely(
            "spaced repetition", c.spaced_repetition.record_batch(build_review_batch(questions, result))
        )
        topics = build_topic_batch(questions, result)
        if topics:
            await self._safely("topic performance", c.topic_performance.track_batch(topics))
        await self._safely("badge evaluation", c.badges.evaluate())

    @staticmethod
    async def _safely(name: str, call: Awaitable) -> None:
        try:
            await call
        except Exception:
            logger.error(f"결과 저장 실패 ({name}). 계산된 결과는 유지됩니다.", exc_info=True)
