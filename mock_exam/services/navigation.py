"""
services/navigation.py

플래그 표시와 현재 위치, 섹션별 진행 현황.

상태 분류(status_of)는 진행률 집계용 단일 값으로 answered > flagged 순이다.
플래그 표시 자체는 답 여부와 무관하게 is_flagged()로 따로 조회한다.
"""

from typing import List, Optional

from mock_exam.errors import QuestionIndexError
from mock_exam.models.session_state import QuestionStatus, Section, SectionStats, SessionState
from mock_exam.services.sections import section_of


class NavigationController:
    def __init__(self, state: SessionState, sections: List[Section]):
        self.state = state
        self.sections = sections

    @property
    def current_index(self) -> int:
        return self.state.current_index

    def check_index(self, index: int) -> int:
        total = self.state.question_count
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < total:
            raise QuestionIndexError(f"문제 인덱스 {index}는 [0, {total}) 범위를 벗어났습니다.")
        return index

    def move_to(self, index: int) -> None:
        """시간 기록은 호출자(엔진)가 먼저 끝낸 뒤 호출한다."""
        self.state.current_index = self.check_index(index)

    def next_index(self) -> Optional[int]:
        nxt = self.state.current_index + 1
        return nxt if nxt < self.state.question_count else None

    def previous_index(self) -> Optional[int]:
        prev = self.state.current_index - 1
        return prev if prev >= 0 else None

    # ── 플래그 ────────────────────────────────────────────────────────────

    def toggle_flag(self, index: int) -> bool:
        """플래그를 뒤집고 새 상태를 반환한다."""
        self.check_index(index)
        flagged = self.state.flagged
        if index in flagged:
            flagged.discard(index)
            return False
        flagged.add(index)
        return True

    def is_flagged(self, index: int) -> bool:
        return index in self.state.flagged

    # ── 상태 / 진행 현황 ──────────────────────────────────────────────────

    def status_of(self, index: int) -> QuestionStatus:
        self.check_index(index)
        if self.state.answers[index] is not None:
            return QuestionStatus.ANSWERED
        if index in self.state.flagged:
            return QuestionStatus.FLAGGED
        return QuestionStatus.UNANSWERED

    def section_stats(self, section: Section) -> SectionStats:
        answers = self.state.answers
        flagged = self.state.flagged
        indices = section.indices()
        return SectionStats(
            answered_count=sum(1 for i in indices if answers[i] is not None),
            total_count=section.size,
            flagged_count=sum(1 for i in indices if i in flagged),
        )

    def current_section(self) -> Optional[Section]:
        return section_of(self.sections, self.state.current_index)

    def answered_count(self) -> int:
        return sum(1 for a in self.state.answers if a is not None)

    def progress_percent(self) -> float:
        total = self.state.question_count
        return self.answered_count() / total * 100 if total else 0.0
