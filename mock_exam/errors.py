"""
errors.py — 시험 엔진 예외 계층

API 계층은 이 예외들을 HTTP 상태 코드로 변환한다.
"""

from typing import Optional


class ExamEngineError(Exception):
    """시험 엔진에서 발생하는 모든 예외의 기반 클래스."""


class UpgradeRequiredError(ExamEngineError):
    """이용권(entitlement) 거부. 자동 재시도하지 않고 업그레이드 흐름으로 보낸다."""

    def __init__(self, tier: str, remaining: Optional[int] = None):
        self.tier = tier
        self.remaining = remaining
        super().__init__(f"'{tier}' 모의고사 이용 한도를 초과했습니다. 플랜 업그레이드가 필요합니다.")


class QuestionBankUnavailableError(ExamEngineError):
    """문제 은행 조회 실패. 사용자는 다시 시도할 수 있다."""


class InvalidTransitionError(ExamEngineError):
    """현재 단계(phase)에서 허용되지 않는 조작."""


class QuestionIndexError(ExamEngineError, IndexError):
    """문제 인덱스가 [0, 문항 수) 범위를 벗어남."""


class AnswerFormatError(ExamEngineError, ValueError):
    """원시 답안 값을 문제 유형에 맞는 답안 모델로 만들 수 없음."""
