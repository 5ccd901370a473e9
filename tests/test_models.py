"""
Unit Tests for question / session models
"""

import pytest
from pydantic import ValidationError

from mock_exam.errors import AnswerFormatError
from mock_exam.models.question_model import (
    BlanksAnswer,
    MatchingAnswer,
    MultiChoiceAnswer,
    NumericAnswer,
    QuestionType,
    SingleChoiceAnswer,
    answer_for,
)
from mock_exam.models.session_state import LengthTier, SessionConfig, SessionState


class TestSessionConfig:

    @pytest.mark.parametrize(
        "tier,count,duration",
        [("quick", 15, 2160), ("half", 25, 3600), ("full", 50, 7200)],
    )
    def test_for_tier_when_called_then_fixes_count_and_duration(self, tier, count, duration):
        config = SessionConfig.for_tier("BT", tier)
        assert config.length_tier is LengthTier(tier)
        assert config.question_count == count
        assert config.duration_seconds == duration

    def test_init_when_count_disagrees_with_tier_then_raises_error(self):
        with pytest.raises(ValidationError, match="quick"):
            SessionConfig(paper_code="BT", length_tier="quick", question_count=20, duration_seconds=2160)

    def test_for_tier_when_unknown_tier_then_raises_error(self):
        with pytest.raises(ValueError):
            SessionConfig.for_tier("BT", "marathon")


class TestSessionState:

    def test_start_when_called_then_ledgers_match_question_count(self, question_pool):
        state = SessionState.start(question_pool[:15], 2160)
        assert len(state.answers) == len(state.time_per_question) == 15
        assert all(a is None for a in state.answers)
        assert state.time_remaining_seconds == 2160
        assert state.current_index == 0

    def test_init_when_answers_length_mismatch_then_raises_error(self, question_pool):
        with pytest.raises(ValidationError, match="길이"):
            SessionState(questions=question_pool[:3], answers=[None], time_remaining_seconds=10, duration_seconds=10)

    def test_init_when_flag_out_of_range_then_raises_error(self, question_pool):
        with pytest.raises(ValidationError):
            SessionState(questions=question_pool[:3], flagged={3}, time_remaining_seconds=10, duration_seconds=10)

    def test_init_when_remaining_exceeds_duration_then_raises_error(self, question_pool):
        with pytest.raises(ValidationError):
            SessionState(questions=question_pool[:3], time_remaining_seconds=11, duration_seconds=10)


class TestAnswerFor:

    def test_answer_for_when_none_then_returns_none(self, make_question):
        assert answer_for(make_question(), None) is None

    @pytest.mark.parametrize(
        "qtype,raw,expected",
        [
            ("MCQ_SINGLE", 2, SingleChoiceAnswer(index=2)),
            ("mcq", 1, SingleChoiceAnswer(index=1)),
            ("MCQ_MULTI", [2, 0], MultiChoiceAnswer(indices=[0, 2])),
            ("FILL_IN_BLANK", {"0": "x"}, BlanksAnswer(values={0: "x"})),
            ("CALCULATION", "12.5", NumericAnswer(value=12.5)),
            ("MATCHING", {"0": 1}, MatchingAnswer(pairs={0: 1})),
        ],
    )
    def test_answer_for_when_raw_value_then_builds_variant_for_type(self, make_question, qtype, raw, expected):
        assert answer_for(make_question(type=qtype), raw) == expected

    def test_answer_for_when_tagged_dict_then_accepted(self, make_question):
        answer = answer_for(make_question(type="MCQ_MULTI"), {"kind": "multi", "indices": [1]})
        assert answer == MultiChoiceAnswer(indices=[1])

    def test_answer_for_when_tag_mismatches_type_then_raises_error(self, make_question):
        with pytest.raises(AnswerFormatError):
            answer_for(make_question(type="CALCULATION"), {"kind": "single", "index": 1})

    def test_answer_for_when_value_shape_wrong_then_raises_error(self, make_question):
        with pytest.raises(AnswerFormatError):
            answer_for(make_question(type="MATCHING"), "A-1")

    def test_answer_for_when_unknown_type_then_raises_error(self, make_question):
        with pytest.raises(AnswerFormatError, match="ESSAY"):
            answer_for(make_question(type="ESSAY"), "text")

    def test_question_type_when_unknown_tag_then_none(self, make_question):
        assert make_question(type="ESSAY").question_type is None
        assert make_question(type="mcq").question_type is QuestionType.MCQ
