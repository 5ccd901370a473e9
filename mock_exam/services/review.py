"""
services/review.py

제출 후 읽기 전용 리뷰 모드.

작업 목록은 전체 문항 또는 오답 문항만(incorrect_only)으로 구성하며,
정답 여부는 채점 시 고정된 ExamResult.outcomes를 그대로 사용한다.
오답만 보기에서 목록이 비면 '만점' 종료 상태를 알린다.
"""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mock_exam.models.question_model import Answer, Question
from mock_exam.models.session_state import ExamResult


class ReviewStatus(str, Enum):
    NAVIGATING = "navigating"
    PERFECT_SCORE = "perfect_score"


class ReviewKey(str, Enum):
    ARROW_LEFT = "ArrowLeft"
    ARROW_RIGHT = "ArrowRight"
    ESCAPE = "Escape"


class ReviewItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    question: Question
    answer: Optional[Answer]
    is_correct: bool
    flagged: bool
    time_spent_ms: int


class ReviewModeController:
    def __init__(
        self,
        questions: Sequence[Question],
        answers: Sequence,
        flagged: Sequence[int],
        result: ExamResult,
    ):
        self._items = [
            ReviewItem(
                index=i,
                question=q,
                answer=answers[i],
                is_correct=result.outcomes[i],
                flagged=i in flagged,
                time_spent_ms=result.time_per_question[i],
            )
            for i, q in enumerate(questions)
        ]
        self.incorrect_only = False
        self.position = 0

    @property
    def working_list(self) -> List[ReviewItem]:
        if self.incorrect_only:
            return [item for item in self._items if not item.is_correct]
        return list(self._items)

    @property
    def status(self) -> ReviewStatus:
        if self.incorrect_only and not self.working_list:
            return ReviewStatus.PERFECT_SCORE
        return ReviewStatus.NAVIGATING

    @property
    def is_perfect_score(self) -> bool:
        return self.status is ReviewStatus.PERFECT_SCORE

    def current(self) -> Optional[ReviewItem]:
        """만점 종료 상태(또는 빈 시험)에서는 None."""
        items = self.working_list
        if not items:
            return None
        return items[self.position]

    def set_incorrect_only(self, enabled: bool) -> None:
        """모드를 바꾸면 항상 첫 항목으로 돌아간다."""
        self.incorrect_only = bool(enabled)
        self.position = 0

    def toggle_incorrect_only(self) -> bool:
        self.set_incorrect_only(not self.incorrect_only)
        return self.incorrect_only

    def next(self) -> Optional[ReviewItem]:
        last = len(self.working_list) - 1
        self.position = max(0, min(self.position + 1, last))
        return self.current()

    def previous(self) -> Optional[ReviewItem]:
        self.position = max(0, self.position - 1)
        return self.current()

    def reset(self) -> None:
        self.set_incorrect_only(False)
