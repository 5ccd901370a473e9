"""
services/exam_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성 — UI 코드, 전역 상태 변경 없음.
"""

from typing import List, Optional, Sequence

from config import PASS_MARK_PERCENT
from mock_exam.models.question_model import Question
from mock_exam.models.session_state import ExamResult, Section, SectionResult, SessionState
from mock_exam.services.answer_validator import is_correct


def grade_answers(questions: Sequence[Question], answers: Sequence) -> List[bool]:
    """
    문항별 정답 여부 리스트를 반환한다.

    응답하지 않은 문제(None)는 오답으로 처리.
    """
    return [is_correct(q, a) for q, a in zip(questions, answers)]


def calculate_accuracy(correct_count: int, total: int) -> float:
    """
    100 * correct / total. 반올림하지 않는다 (표시 단계에서 처리).

    total이 0이면 0.0 반환.
    """
    if total <= 0:
        return 0.0
    return 100.0 * correct_count / total


def is_passed(accuracy_pct: float, pass_mark: float = PASS_MARK_PERCENT) -> bool:
    """
    합격 여부를 반환한다.

    Args:
        accuracy_pct: calculate_accuracy()가 반환한 정답률 (0.0 ~ 100.0).
        pass_mark:    합격 기준 (기본값 50.0, 경계 포함).
    """
    return accuracy_pct >= pass_mark


def calculate_section_results(
    sections: Sequence[Section],
    outcomes: Sequence[bool],
    answers: Sequence,
    time_per_question: Sequence[int],
) -> List[SectionResult]:
    """
    섹션별 정답 수, 응답 수, 정답률, 체류 시간 합계를 계산한다.

    Returns:
        sections 순서 그대로의 SectionResult 리스트.
    """
    results = []
    for section in sections:
        indices = section.indices()
        correct = sum(1 for i in indices if outcomes[i])
        results.append(
            SectionResult(
                name=section.name,
                start_index=section.start_index,
                end_index=section.end_index,
                correct_count=correct,
                total_count=section.size,
                answered_count=sum(1 for i in indices if answers[i] is not None),
                accuracy_pct=calculate_accuracy(correct, section.size),
                time_spent_seconds=sum(time_per_question[i] for i in indices) / 1000,
            )
        )
    return results


def score_session(
    state: SessionState,
    sections: Sequence[Section],
    outcomes: Optional[Sequence[bool]] = None,
) -> ExamResult:
    """
    최종 답안과 시간 장부로 ExamResult를 만든다.

    현재 문항의 시간 마감(TimerController.record_elapsed)은 호출 전에 끝나 있어야 한다.
    """
    if outcomes is None:
        outcomes = grade_answers(state.questions, state.answers)

    total = state.question_count
    correct_count = sum(1 for ok in outcomes if ok)
    accuracy = calculate_accuracy(correct_count, total)

    return ExamResult(
        correct_count=correct_count,
        total_questions=total,
        accuracy_pct=accuracy,
        passed=is_passed(accuracy),
        section_results=tuple(
            calculate_section_results(sections, outcomes, state.answers, state.time_per_question)
        ),
        total_elapsed_seconds=max(0, state.duration_seconds - state.time_remaining_seconds),
        time_per_question=tuple(state.time_per_question),
        flagged_count=len(state.flagged),
        unanswered_count=sum(1 for a in state.answers if a is None),
        outcomes=tuple(outcomes),
    )
