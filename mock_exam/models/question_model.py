"""
models/question_model.py

모의고사 문제 모델과 답안 모델.
문제 유형(type)마다 답안의 모양이 다르므로, 답안은 `kind`로 구분되는
태그드 유니언으로 표현한다. Pydantic v2 적용.
"""

from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from mock_exam.errors import AnswerFormatError


class QuestionType(str, Enum):
    """문제 유형 태그. `mcq`는 구 데이터의 단일 선택 표기."""

    MCQ_SINGLE = "MCQ_SINGLE"
    MCQ_MULTI = "MCQ_MULTI"
    FILL_IN_BLANK = "FILL_IN_BLANK"
    CALCULATION = "CALCULATION"
    MATCHING = "MATCHING"
    SCENARIO_BASED = "SCENARIO_BASED"
    MCQ = "mcq"


class Question(BaseModel):
    """
    문제 은행에서 가져온 문제 한 개. 가져온 뒤에는 변경되지 않는다.

    type은 문자열로 보관한다. 알 수 없는 유형 태그가 들어와도 모델 생성은
    성공하고, 채점 단계에서 오답으로 처리된다.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="문제 고유 식별자")
    paper_code: str = Field(..., min_length=1, description="과목 코드 (예: BT, FA)")
    unit_code: Optional[str] = Field(None, description="단원 코드")
    type: str = Field(QuestionType.MCQ_SINGLE.value, description="문제 유형 태그")
    prompt: str = Field(..., min_length=1, description="발문")
    options: List[str] = Field(default_factory=list, description="보기 리스트")
    correct_option_index: Optional[int] = Field(None, description="단일 선택 정답 인덱스")
    answer_text: Optional[str] = Field(None, description="계산형 정답 (문자열)")
    metadata: Optional[Dict[str, Any]] = Field(None, description="유형별 채점 정보")
    explanation: Optional[str] = Field(None, description="해설")
    difficulty: Optional[str] = Field(None, description="난이도 (easy / medium / hard)")
    topic_name: Optional[str] = Field(None, description="주제명 (주제별 성과 추적용)")

    @property
    def question_type(self) -> Optional[QuestionType]:
        """알려진 유형이면 QuestionType, 아니면 None."""
        try:
            return QuestionType(self.type)
        except ValueError:
            return None


# ── 답안 (태그드 유니언) ────────────────────────────────────────────────────

class SingleChoiceAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    index: int


class MultiChoiceAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multi"] = "multi"
    indices: FrozenSet[int]


class BlanksAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["blanks"] = "blanks"
    values: Dict[int, str]


class NumericAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    value: float


class MatchingAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["matching"] = "matching"
    pairs: Dict[int, int]


class ScenarioAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["scenario"] = "scenario"
    values: Dict[int, Any]


Answer = Annotated[
    Union[
        SingleChoiceAnswer,
        MultiChoiceAnswer,
        BlanksAnswer,
        NumericAnswer,
        MatchingAnswer,
        ScenarioAnswer,
    ],
    Field(discriminator="kind"),
]

AnswerAdapter = TypeAdapter(Answer)

# 문제 유형 -> (답안 모델, 원시 값을 담을 필드명)
ANSWER_SHAPES: Dict[QuestionType, tuple] = {
    QuestionType.MCQ_SINGLE: (SingleChoiceAnswer, "index"),
    QuestionType.MCQ: (SingleChoiceAnswer, "index"),
    QuestionType.MCQ_MULTI: (MultiChoiceAnswer, "indices"),
    QuestionType.FILL_IN_BLANK: (BlanksAnswer, "values"),
    QuestionType.CALCULATION: (NumericAnswer, "value"),
    QuestionType.MATCHING: (MatchingAnswer, "pairs"),
    QuestionType.SCENARIO_BASED: (ScenarioAnswer, "values"),
}


def answer_for(question: Question, value: Any):
    """
    클라이언트가 보낸 원시 값을 문제 유형에 맞는 답안 모델로 변환한다.

    - None이면 None (답안 지우기)
    - 이미 `kind`를 가진 dict면 태그드 유니언으로 검증 후 유형 일치 확인
    - 그 외에는 유형별 필드에 값을 담아 생성

    Raises:
        AnswerFormatError: 알 수 없는 유형이거나 값의 모양이 맞지 않을 때.
    """
    if value is None:
        return None

    qtype = question.question_type
    if qtype is None:
        raise AnswerFormatError(f"지원하지 않는 문제 유형입니다: {question.type}")

    model, field_name = ANSWER_SHAPES[qtype]
    try:
        if isinstance(value, dict) and "kind" in value:
            answer = AnswerAdapter.validate_python(value)
        else:
            answer = model(**{field_name: value})
    except ValidationError as e:
        raise AnswerFormatError(f"답안 형식이 올바르지 않습니다 ({question.type}): {e}") from e

    if not isinstance(answer, model):
        raise AnswerFormatError(
            f"'{answer.kind}' 답안은 {question.type} 문제에 사용할 수 없습니다."
        )
    return answer
