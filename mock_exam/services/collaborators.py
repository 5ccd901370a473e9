"""
services/collaborators.py

엔진 바깥의 협력 서비스 경계와 인메모리 구현.

엔진은 아래 인터페이스만 알고, 실제 구현은 주입받는다.
  - QuestionBank            : 과목별 문제 묶음 조회
  - EntitlementService      : 모의고사 이용 가능 여부
  - SessionLogStore         : 시험 기록 저장
  - SpacedRepetitionUpdater : 간격 반복 복습 갱신
  - TopicPerformanceTracker : 주제별 성과 누적
  - BadgeEvaluator          : 배지 평가 트리거
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from config import DEFAULT_PLAN, FREE_MOCKS_TOTAL, PRO_MOCKS_PER_WEEK
from mock_exam.models.question_model import Question

logger = logging.getLogger(__name__)

MOCK_EXAM_FEATURE = "mock-exam"


# ── 요청 / 응답 페이로드 ────────────────────────────────────────────────────

class _Payload(BaseModel):
    """외부 서비스 페이로드. model_dump(by_alias=True)로 camelCase 키를 만든다."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Entitlement(_Payload):
    allowed: bool
    remaining: Optional[int] = None


class RawLogEntry(_Payload):
    question_id: str
    unit_code: Optional[str] = None
    difficulty: Optional[str] = None
    correct: bool
    time_spent_seconds: float


class SessionLogPayload(_Payload):
    session_type: str = "mock_exam"
    total_questions: int
    correct_answers: int
    raw_log: Tuple[RawLogEntry, ...]


class ReviewRecord(_Payload):
    question_id: str
    is_correct: bool


class TopicPerformanceRecord(_Payload):
    paper_code: str
    unit_code: Optional[str] = None
    topic_name: str
    is_correct: bool


# ── 인터페이스 ──────────────────────────────────────────────────────────────

class QuestionBank(Protocol):
    async def fetch_questions(self, paper_code: str, count: int) -> List[Question]:
        """최대 count개. 정확히 count개라는 보장은 없다."""


class EntitlementService(Protocol):
    async def check(self, feature: str, tier: str) -> Entitlement: ...


class SessionLogStore(Protocol):
    async def log_session(self, payload: SessionLogPayload) -> None: ...


class SpacedRepetitionUpdater(Protocol):
    async def record_batch(self, reviews: Sequence[ReviewRecord]) -> None: ...


class TopicPerformanceTracker(Protocol):
    async def track_batch(self, entries: Sequence[TopicPerformanceRecord]) -> None: ...


class BadgeEvaluator(Protocol):
    async def evaluate(self) -> None: ...


@dataclass
class Collaborators:
    question_bank: QuestionBank
    entitlement: EntitlementService
    session_log: SessionLogStore
    spaced_repetition: SpacedRepetitionUpdater
    topic_performance: TopicPerformanceTracker
    badges: BadgeEvaluator


# ── 인메모리 구현 ───────────────────────────────────────────────────────────

class InMemoryQuestionBank:
    """과목 코드로 거른 뒤 중복 없이 무작위 추출."""

    def __init__(self, questions: Sequence[Question], rng: Optional[random.Random] = None):
        self._questions = list(questions)
        self._rng = rng or random.Random()

    async def fetch_questions(self, paper_code: str, count: int) -> List[Question]:
        pool = [q for q in self._questions if q.paper_code == paper_code]
        return self._rng.sample(pool, min(count, len(pool)))


@dataclass
class UsageLedger:
    """완료한 모의고사 시각 기록. 플랜별 이용 한도 계산에 쓴다."""

    completed_at: List[datetime] = field(default_factory=list)

    def record(self, when: Optional[datetime] = None) -> None:
        self.completed_at.append(when or datetime.now(timezone.utc))

    @property
    def total(self) -> int:
        return len(self.completed_at)

    def used_since(self, since: datetime) -> int:
        return sum(1 for ts in self.completed_at if ts >= since)


class PlanEntitlementService:
    """
    구독 플랜 기반 이용 한도.

      free  : 전체 기간 1회
      pro   : 최근 7일 4회
      elite : 무제한
    """

    def __init__(self, ledger: UsageLedger, plan: str = DEFAULT_PLAN):
        self.ledger = ledger
        self.plan = plan

    def _remaining(self) -> Optional[int]:
        if self.plan == "elite":
            return None
        if self.plan == "pro":
            week_ago = datetime.now(timezone.utc) - timedelta(days=7)
            return max(0, PRO_MOCKS_PER_WEEK - self.ledger.used_since(week_ago))
        return max(0, FREE_MOCKS_TOTAL - self.ledger.total)

    async def check(self, feature: str, tier: str) -> Entitlement:
        if feature != MOCK_EXAM_FEATURE:
            return Entitlement(allowed=False, remaining=0)
        remaining = self._remaining()
        return Entitlement(allowed=remaining is None or remaining > 0, remaining=remaining)


class InMemorySessionLog:
    def __init__(self, ledger: Optional[UsageLedger] = None):
        self.ledger = ledger
        self.entries: List[SessionLogPayload] = []

    async def log_session(self, payload: SessionLogPayload) -> None:
        self.entries.append(payload)
        if self.ledger is not None:
            self.ledger.record()


class InMemorySpacedRepetition:
    """문항별 (정답 횟수, 시도 횟수)만 누적. 복습 일정 계산은 범위 밖."""

    def __init__(self):
        self.stats: Dict[str, Tuple[int, int]] = {}

    async def record_batch(self, reviews: Sequence[ReviewRecord]) -> None:
        for r in reviews:
            correct, attempts = self.stats.get(r.question_id, (0, 0))
            self.stats[r.question_id] = (correct + int(r.is_correct), attempts + 1)


class InMemoryTopicPerformance:
    def __init__(self):
        self.stats: Dict[Tuple[str, str, str], Tuple[int, int]] = {}

    async def track_batch(self, entries: Sequence[TopicPerformanceRecord]) -> None:
        for e in entries:
            key = (e.paper_code, e.unit_code or "", e.topic_name)
            attempted, correct = self.stats.get(key, (0, 0))
            self.stats[key] = (attempted + 1, correct + int(e.is_correct))


class InMemoryBadgeEvaluator:
    def __init__(self):
        self.evaluations = 0

    async def evaluate(self) -> None:
        self.evaluations += 1
        logger.debug(f"배지 평가 트리거 ({self.evaluations}회)")
