"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델과 결과 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음.
"""

from enum import Enum
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config import LENGTH_TIERS
from mock_exam.models.question_model import Answer, Question


class LengthTier(str, Enum):
    QUICK = "quick"
    HALF = "half"
    FULL = "full"


class ExamPhase(str, Enum):
    CONFIGURING = "configuring"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    REVIEWING = "reviewing"


class QuestionStatus(str, Enum):
    """진행률 집계용 단일 상태. answered가 flagged보다 우선한다."""

    ANSWERED = "answered"
    FLAGGED = "flagged"
    UNANSWERED = "unanswered"


class SessionConfig(BaseModel):
    """
    시험 설정. length_tier가 문항 수와 제한 시간을 결정한다.

    직접 생성보다는 `SessionConfig.for_tier()` 사용을 권장.
    """

    model_config = ConfigDict(frozen=True)

    paper_code: str = Field(..., min_length=1, description="과목 코드")
    length_tier: LengthTier = Field(..., description="시험 길이 (quick / half / full)")
    question_count: int = Field(..., gt=0, description="요청 문항 수")
    duration_seconds: int = Field(..., gt=0, description="제한 시간 (초)")

    @model_validator(mode="after")
    def validate_tier_table(self) -> "SessionConfig":
        """문항 수와 제한 시간은 length_tier 표와 일치해야 한다."""
        expected = LENGTH_TIERS[self.length_tier.value]
        if (self.question_count, self.duration_seconds) != expected:
            raise ValueError(
                f"'{self.length_tier.value}' 시험은 {expected[0]}문항 / {expected[1]}초여야 합니다."
            )
        return self

    @classmethod
    def for_tier(cls, paper_code: str, tier) -> "SessionConfig":
        tier = LengthTier(tier)
        count, duration = LENGTH_TIERS[tier.value]
        return cls(
            paper_code=paper_code,
            length_tier=tier,
            question_count=count,
            duration_seconds=duration,
        )


class Section(BaseModel):
    """문항 인덱스의 연속 구간 [start_index, end_index] (양 끝 포함)."""

    model_config = ConfigDict(frozen=True)

    name: str
    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)

    @property
    def size(self) -> int:
        return self.end_index - self.start_index + 1

    def indices(self) -> range:
        return range(self.start_index, self.end_index + 1)

    def __contains__(self, index: int) -> bool:
        return self.start_index <= index <= self.end_index


class SectionStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    answered_count: int
    total_count: int
    flagged_count: int


class SessionState(BaseModel):
    """
    진행 중인 시험의 가변 상태. 엔진만 변경한다.

    Attributes:
        questions:              시작 시 확정된 문제 순서.
        answers:                questions와 1:1 대응하는 답안. 미응답은 None.
        flagged:                '나중에 다시 보기' 표시된 인덱스.
        time_per_question:      문항별 누적 체류 시간 (밀리초, 감소하지 않음).
        current_index:          현재 문제 인덱스 (0-based).
        time_remaining_seconds: 남은 시간 (초).
        duration_seconds:       제한 시간 (초).
    """

    questions: List[Question]
    answers: List[Optional[Answer]] = Field(default_factory=list)
    flagged: Set[int] = Field(default_factory=set)
    time_per_question: List[int] = Field(default_factory=list)
    current_index: int = Field(default=0, ge=0)
    time_remaining_seconds: int = Field(..., ge=0)
    duration_seconds: int = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_ledgers(self) -> "SessionState":
        """답안/시간 장부는 문항 수와 길이가 같아야 한다. 비어 있으면 채운다."""
        total = len(self.questions)
        if not self.answers:
            self.answers = [None] * total
        if not self.time_per_question:
            self.time_per_question = [0] * total
        if len(self.answers) != total or len(self.time_per_question) != total:
            raise ValueError("answers / time_per_question 길이가 문항 수와 다릅니다.")
        if any(i < 0 or i >= total for i in self.flagged):
            raise ValueError("flagged 인덱스가 범위를 벗어났습니다.")
        if self.time_remaining_seconds > self.duration_seconds:
            raise ValueError("남은 시간이 제한 시간보다 클 수 없습니다.")
        return self

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @classmethod
    def start(cls, questions: List[Question], duration_seconds: int) -> "SessionState":
        return cls(
            questions=list(questions),
            time_remaining_seconds=duration_seconds,
            duration_seconds=duration_seconds,
        )


class SectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    start_index: int
    end_index: int
    correct_count: int
    total_count: int
    answered_count: int
    accuracy_pct: float
    time_spent_seconds: float


class ExamResult(BaseModel):
    """
    채점 결과. 제출 시 한 번만 만들어지며 이후 변경되지 않는다.

    outcomes는 문항별 정답 여부로, 리뷰 모드가 다시 채점하지 않고 사용한다.
    """

    model_config = ConfigDict(frozen=True)

    correct_count: int
    total_questions: int
    accuracy_pct: float
    passed: bool
    section_results: Tuple[SectionResult, ...]
    total_elapsed_seconds: int
    time_per_question: Tuple[int, ...]
    flagged_count: int
    unanswered_count: int
    outcomes: Tuple[bool, ...]
