"""
services/answer_validator.py

문제 한 개의 정답 여부 판정.
순수 함수 — 부작용 없음, 예외를 던지지 않는다.

판정 규칙:
  - 답안이 None이면 항상 오답
  - 답안 모델이 문제 유형과 맞지 않으면 오답
  - metadata가 없거나 형식이 틀리면 오답 (fail-closed)
  - 알 수 없는 유형 태그는 오답
부분 점수는 없다.
"""

import logging
import math
from decimal import Decimal
from typing import Any, Dict, Optional

from mock_exam.models.question_model import (
    BlanksAnswer,
    MatchingAnswer,
    MultiChoiceAnswer,
    NumericAnswer,
    Question,
    QuestionType,
    ScenarioAnswer,
    SingleChoiceAnswer,
)

logger = logging.getLogger(__name__)


def _metadata(question: Question) -> Dict[str, Any]:
    return question.metadata if isinstance(question.metadata, dict) else {}


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_decimal(value: Any) -> Optional[Decimal]:
    """최단 10진 표기로 변환. 0.51 - 0.5 같은 경계 비교가 이진 오차 없이 된다."""
    number = _to_float(value)
    return None if number is None else Decimal(repr(number))


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ── 유형별 판정 ─────────────────────────────────────────────────────────────

def _check_single(question: Question, answer) -> bool:
    if not isinstance(answer, SingleChoiceAnswer):
        return False
    if question.correct_option_index is None:
        return False
    return answer.index == question.correct_option_index


def _check_multi(question: Question, answer) -> bool:
    if not isinstance(answer, MultiChoiceAnswer):
        return False
    correct = _metadata(question).get("correctAnswers")
    if not isinstance(correct, list) or not correct:
        return False
    correct_set = {_to_int(c) for c in correct}
    if None in correct_set:
        return False
    return len(answer.indices) == len(correct) and all(i in correct_set for i in answer.indices)


def _blank_expected(blank: Any) -> Optional[str]:
    """빈칸 정답: {"correctAnswer": "..."} 형식 또는 문자열 그대로."""
    if isinstance(blank, dict):
        blank = blank.get("correctAnswer")
    return blank if isinstance(blank, str) else None


def _check_blanks(question: Question, answer) -> bool:
    if not isinstance(answer, BlanksAnswer):
        return False
    blanks = _metadata(question).get("blanks")
    if not isinstance(blanks, list) or not blanks:
        return False

    for idx, blank in enumerate(blanks):
        expected = _blank_expected(blank)
        given = answer.values.get(idx)
        if expected is None or given is None:
            return False
        if given.strip().lower() != expected.strip().lower():
            return False
    return True


def _check_calculation(question: Question, answer) -> bool:
    if not isinstance(answer, NumericAnswer):
        return False
    given = _to_decimal(answer.value)
    expected = _to_decimal(question.answer_text)
    if given is None or expected is None:
        return False

    tolerance = _metadata(question).get("tolerance", 0)
    tolerance = Decimal(0) if tolerance is None else _to_decimal(tolerance)
    if tolerance is None or tolerance < 0:
        return False
    # 경계값(== tolerance)은 정답
    return abs(given - expected) <= tolerance


def _correct_pairs(raw: Any) -> Optional[Dict[int, int]]:
    """[[left, right], ...] 또는 {left: right} 형식을 dict로 정규화."""
    if not isinstance(raw, (dict, list)) or not raw:
        return None

    pairs: Dict[int, int] = {}
    for item in (raw.items() if isinstance(raw, dict) else raw):
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            return None
        left, right = _to_int(item[0]), _to_int(item[1])
        if left is None or right is None:
            return None
        pairs[left] = right
    return pairs


def _check_matching(question: Question, answer) -> bool:
    if not isinstance(answer, MatchingAnswer):
        return False
    pairs = _correct_pairs(_metadata(question).get("correctPairs"))
    if pairs is None:
        return False
    return all(answer.pairs.get(left) == right for left, right in pairs.items())


def _check_scenario(question: Question, answer) -> bool:
    if not isinstance(answer, ScenarioAnswer):
        return False
    sub_questions = _metadata(question).get("subQuestions")
    if not isinstance(sub_questions, list) or not sub_questions:
        return False

    for idx, sub in enumerate(sub_questions):
        if not isinstance(sub, dict) or "correctAnswer" not in sub:
            return False
        if idx not in answer.values or answer.values[idx] != sub["correctAnswer"]:
            return False
    return True


_CHECKERS = {
    QuestionType.MCQ_SINGLE: _check_single,
    QuestionType.MCQ: _check_single,
    QuestionType.MCQ_MULTI: _check_multi,
    QuestionType.FILL_IN_BLANK: _check_blanks,
    QuestionType.CALCULATION: _check_calculation,
    QuestionType.MATCHING: _check_matching,
    QuestionType.SCENARIO_BASED: _check_scenario,
}


def is_correct(question: Question, answer) -> bool:
    """
    문제와 답안을 받아 정답 여부를 반환한다.

    Args:
        question: 채점 대상 Question.
        answer:   question_model의 답안 모델 중 하나, 또는 None (미응답).

    Returns:
        정답이면 True. 미응답/형식 오류/알 수 없는 유형은 모두 False.
    """
    if answer is None:
        return False

    qtype = question.question_type
    if qtype is None:
        logger.debug(f"알 수 없는 문제 유형 '{question.type}' (id={question.id}) → 오답 처리")
        return False

    return _CHECKERS[qtype](question, answer)
